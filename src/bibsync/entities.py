"""entities.py
Shared type definitions used across the synchronization pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

# A Zotero item's ``data`` object, passed through to Elasticsearch unchanged.
# The only field the job relies on is ``key``.
BibliographyItem = dict[str, Any]

# Label translations for one locale code, e.g. ``"en-US"``.
LocaleEntry = dict[str, Any]

# One ``(metadata, serialized document)`` pair of a bulk request.
BulkAction = tuple[dict[str, Any], str]


@dataclass(frozen=True)
class IndexDescriptor:
    """Target index name plus the supplier of ``(document_id, document)`` pairs."""

    name: str
    documents: Callable[[], Iterable[tuple[str, dict[str, Any]]]]


@dataclass
class SyncStats:
    """Counters collected during one synchronization run."""

    items_fetched: int = 0
    locales_fetched: int = 0
    page_requests: int = 0
    bulk_requests: dict[str, int] = field(default_factory=dict)
