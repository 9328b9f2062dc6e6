"""fields.py
Field rules for searching and displaying synced Zotero items.

A hit is displayed as three sections. Each section is a list of
:class:`FieldSpec`; a spec names a field of the item's ``data`` object and an
optional condition that must hold for the value to be shown. Dotted paths such
as ``creators.lastName`` address every element of the ``creators`` list, and
the condition is evaluated against the same element.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import groupby
from typing import Any, Optional, Sequence

_RELATIONS = {"eq", "neq"}


@dataclass(frozen=True)
class FieldSpec:
    field: str
    condition_field: Optional[str] = None
    condition_value: Any = ""
    condition_relation: str = "eq"

    def __post_init__(self) -> None:
        if self.condition_relation not in _RELATIONS:
            raise ValueError(
                f"Unsupported relation '{self.condition_relation}'. "
                f"Allowed: {sorted(_RELATIONS)}"
            )

    def accepts(self, record: dict[str, Any]) -> bool:
        """Return whether the condition holds for *record*.

        For dotted paths *record* is the list element, so only the last path
        segment of ``condition_field`` is looked up.
        """
        if self.condition_field is None:
            return True
        actual = record.get(self.condition_field.rsplit(".", 1)[-1]) or ""
        if self.condition_relation == "eq":
            return actual == self.condition_value
        return actual != self.condition_value


def _author(part: str) -> FieldSpec:
    return FieldSpec(f"creators.{part}", "creators.creatorType", "author")


def _editor(part: str) -> FieldSpec:
    return FieldSpec(f"creators.{part}", "creators.creatorType", "editor")


def _present(name: str) -> FieldSpec:
    return FieldSpec(name, name, "", "neq")


HEADER_FIELDS: tuple[FieldSpec, ...] = (_author("firstName"), _author("lastName"))

BODY_FIELDS: tuple[FieldSpec, ...] = (FieldSpec("title"), FieldSpec("shortTitle"))

FOOTER_FIELDS: tuple[FieldSpec, ...] = (
    _editor("firstName"),
    _editor("lastName"),
    _present("publicationTitle"),
    _present("bookTitle"),
    _present("university"),
    _present("volume"),
    _present("issue"),
    _present("place"),
    _present("date"),
)

SEARCHABLE_FIELDS: tuple[str, ...] = (
    "creators.firstName",
    "creators.lastName",
    "title",
    "university",
    "bookTitle",
    "series",
    "publicationTitle",
    "place",
    "date",
    "shortTitle",
)

BOOSTED_FIELDS: frozenset[str] = frozenset({"title"})


def _list_head(spec: FieldSpec) -> Optional[str]:
    return spec.field.split(".", 1)[0] if "." in spec.field else None


def render_section(item: dict[str, Any], specs: Sequence[FieldSpec]) -> str:
    """Join the displayable values of *specs* for *item* into one line.

    Consecutive specs over the same list are combined per element, so
    ``creators.firstName`` + ``creators.lastName`` yields one full name per
    matching creator.
    """
    parts: list[str] = []
    for head, group in groupby(specs, key=_list_head):
        group = list(group)
        if head is None:
            for spec in group:
                value = item.get(spec.field)
                if value not in (None, "", []) and spec.accepts(item):
                    parts.append(str(value))
            continue

        for element in item.get(head) or []:
            if not isinstance(element, dict):
                continue
            tail_values = [
                str(element[spec.field.split(".", 1)[1]])
                for spec in group
                if spec.accepts(element) and element.get(spec.field.split(".", 1)[1])
            ]
            if tail_values:
                parts.append(" ".join(tail_values))
    return ", ".join(parts)
