"""Zotero → Elasticsearch synchronization pipeline.

Workflow
---------
1. Fetch the Zotero locale table (one request).
2. Ask the group for its total number of top-level items.
3. Page through the items ``zotero_bulk_size`` at a time, keeping them in
   arrival order in an in-memory working set.
4. Rebuild the bibliography index: drop it if present, create it empty, then
   bulk-load the working set ``elastic_bulk_size`` documents per request.
5. Rebuild the locale index the same way with a single bulk request.

Nothing is retried or caught here. A failure aborts the run; batches already
written stay in the index and the next full run replaces them.
"""

from __future__ import annotations

import json
import logging
from typing import Iterator, Optional, Protocol, Sequence

from src.bibsync.entities import (
    BibliographyItem,
    BulkAction,
    IndexDescriptor,
    LocaleEntry,
    SyncStats,
)
from src.bibsync.progress import NullProgress, ProgressReporter
from src.bibsync.settings import Settings

logger = logging.getLogger(__name__)


class RemoteSource(Protocol):
    def fetch_locales(self) -> dict[str, LocaleEntry]: ...

    def fetch_total_count(self, collection_id: str) -> int: ...

    def fetch_page(
        self, collection_id: str, offset: int, limit: int
    ) -> list[BibliographyItem]: ...


class SearchIndex(Protocol):
    def index_exists(self, index_name: str) -> bool: ...

    def delete_index(self, index_name: str) -> None: ...

    def create_index(self, index_name: str) -> None: ...

    def bulk_write(self, actions: Sequence[BulkAction]) -> None: ...


class BibliographySyncPipeline:
    """Fetch a Zotero group library and republish it as two Elasticsearch indices."""

    def __init__(
        self,
        source: RemoteSource,
        index: SearchIndex,
        settings: Settings,
        progress: Optional[ProgressReporter] = None,
    ) -> None:
        self._source = source
        self._index = index
        self._settings = settings
        self._progress = progress or NullProgress()
        self._working_set: list[BibliographyItem] = []
        self._locales: dict[str, LocaleEntry] = {}
        self.stats = SyncStats()

    @property
    def working_set(self) -> tuple[BibliographyItem, ...]:
        return tuple(self._working_set)

    @property
    def locales(self) -> dict[str, LocaleEntry]:
        return dict(self._locales)

    def run(self) -> SyncStats:
        """Fetch everything, then rebuild the bibliography and locale indices."""
        self._working_set = []
        self._locales = {}
        self.stats = SyncStats()
        try:
            logger.info("Fetching bibliography data")
            self.fetch()
            logger.info("Committing bibliography data")
            self.commit_bibliography()
            logger.info("Committing locale data")
            self.commit_locales()
        finally:
            self._working_set = []
            self._locales = {}
        return self.stats

    def fetch(self) -> None:
        """Load the locale table and every top-level item of the group."""
        self._locales = self._source.fetch_locales()
        self.stats.locales_fetched = len(self._locales)

        group_id = self._settings.zotero_group_id
        bulk_size = self._settings.zotero_bulk_size
        total = self._source.fetch_total_count(group_id)

        self._progress.start(total, "Fetching items")
        try:
            self._append_page(group_id, 0, bulk_size)
            cursor = bulk_size
            while cursor < total:
                self._progress.advance(bulk_size)
                self._append_page(group_id, cursor, bulk_size)
                cursor += bulk_size
        finally:
            self._progress.finish()

        self.stats.items_fetched = len(self._working_set)
        if len(self._working_set) != total:
            logger.warning(
                "Zotero announced %d items but %d were fetched.",
                total,
                len(self._working_set),
            )
        logger.info("Fetched %d bibliography items.", len(self._working_set))

    def commit_bibliography(self) -> None:
        descriptor = IndexDescriptor(
            self._settings.elastic_index_name, self._bibliography_documents
        )
        self._commit(
            descriptor,
            batch_size=self._settings.elastic_bulk_size,
            total=len(self._working_set),
        )

    def commit_locales(self) -> None:
        """Write all locales in one bulk request, one document per locale code."""
        descriptor = IndexDescriptor(
            self._settings.elastic_locale_index_name, self._locale_documents
        )
        self._commit(descriptor)

    def _append_page(self, group_id: str, offset: int, limit: int) -> None:
        page = self._source.fetch_page(group_id, offset, limit)
        self.stats.page_requests += 1
        self._working_set.extend(page)

    def _bibliography_documents(self) -> Iterator[tuple[str, BibliographyItem]]:
        for item in self._working_set:
            yield item["key"], item

    def _locale_documents(self) -> Iterator[tuple[str, LocaleEntry]]:
        yield from self._locales.items()

    def _reset_index(self, index_name: str) -> None:
        if self._index.index_exists(index_name):
            self._index.delete_index(index_name)
        self._index.create_index(index_name)

    def _commit(
        self,
        descriptor: IndexDescriptor,
        batch_size: Optional[int] = None,
        total: Optional[int] = None,
    ) -> None:
        """Replace the contents of *descriptor.name* with its documents.

        Args:
            descriptor: Target index and document supplier.
            batch_size: Documents per bulk request; ``None`` sends everything in
                a single request.
            total: Document count shown by the progress reporter; ``None``
                disables progress for this index.
        """
        index_name = descriptor.name
        logger.info("Committing the %s index", index_name)
        self._reset_index(index_name)

        batch: list[BulkAction] = []
        requests = 0
        if total is not None:
            self._progress.start(total, f"Indexing {index_name}")
        try:
            for document_id, document in descriptor.documents():
                batch.append(
                    (
                        {"index": {"_index": index_name, "_id": document_id}},
                        json.dumps(document, ensure_ascii=False),
                    )
                )
                if total is not None:
                    self._progress.advance()
                if batch_size is not None and len(batch) >= batch_size:
                    self._index.bulk_write(batch)
                    requests += 1
                    batch = []
        finally:
            if total is not None:
                self._progress.finish()

        # Final flush: a leftover batch, or the single empty write of an empty index.
        if batch or requests == 0:
            self._index.bulk_write(batch)
            requests += 1

        self.stats.bulk_requests[index_name] = requests
        logger.info("Committed the %s index in %d bulk requests", index_name, requests)
