from __future__ import annotations

import json
from typing import Callable

import pytest

from src.bibsync.errors import IndexOperationFailed
from src.bibsync.settings import Settings


def make_items(count: int) -> list[dict]:
    return [
        {"key": f"ITEM{i:04d}", "itemType": "book", "title": f"Title {i}"}
        for i in range(count)
    ]


class FakeSource:
    """In-memory Zotero group that records every request."""

    def __init__(self, items: list[dict], locales: dict | None = None, total: int | None = None):
        self.items = items
        self.locales = locales if locales is not None else {"en-US": {"itemTypes": {}}}
        self.total = len(items) if total is None else total
        self.calls: list[tuple] = []

    def fetch_locales(self) -> dict:
        self.calls.append(("locales",))
        return self.locales

    def fetch_total_count(self, collection_id: str) -> int:
        self.calls.append(("count", collection_id))
        return self.total

    def fetch_page(self, collection_id: str, offset: int, limit: int) -> list[dict]:
        self.calls.append(("page", collection_id, offset, limit))
        return [dict(item) for item in self.items[offset : offset + limit]]


class FakeIndex:
    """In-memory search engine that records lifecycle and bulk calls."""

    def __init__(self, existing: set[str] | None = None, fail_on_bulk: int | None = None):
        self.indices: dict[str, dict[str, dict]] = {name: {} for name in existing or ()}
        self.calls: list[tuple] = []
        self.batches: dict[str, list[list]] = {}
        self._fail_on_bulk = fail_on_bulk
        self._bulk_count = 0

    def index_exists(self, index_name: str) -> bool:
        self.calls.append(("exists", index_name))
        return index_name in self.indices

    def delete_index(self, index_name: str) -> None:
        self.calls.append(("delete", index_name))
        del self.indices[index_name]

    def create_index(self, index_name: str) -> None:
        self.calls.append(("create", index_name))
        self.indices[index_name] = {}

    def bulk_write(self, actions) -> None:
        self._bulk_count += 1
        if self._fail_on_bulk == self._bulk_count:
            raise IndexOperationFailed("bulk rejected")
        actions = list(actions)
        names = {meta["index"]["_index"] for meta, _ in actions}
        self.calls.append(("bulk", len(actions), tuple(sorted(names))))
        for meta, body in actions:
            target = meta["index"]
            self.indices.setdefault(target["_index"], {})[target["_id"]] = json.loads(body)
            self.batches.setdefault(target["_index"], [])
        for name in names:
            self.batches[name].append(actions)

    def bulk_calls(self) -> list[tuple]:
        return [call for call in self.calls if call[0] == "bulk"]


class RecordingProgress:
    def __init__(self):
        self.events: list[tuple] = []

    def start(self, total: int, desc: str) -> None:
        self.events.append(("start", total))

    def advance(self, step: int = 1) -> None:
        self.events.append(("advance", step))

    def finish(self) -> None:
        self.events.append(("finish",))


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    def _make(**overrides) -> Settings:
        values = {
            "zotero_api_key": "secret",
            "zotero_group_id": "4242",
            "zotero_bulk_size": 2,
            "elastic_index_name": "zotero",
            "elastic_locale_index_name": "zotero-locales",
            "elastic_bulk_size": 3,
        }
        values.update(overrides)
        return Settings(**values)

    return _make
