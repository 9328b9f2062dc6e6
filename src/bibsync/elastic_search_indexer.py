"""Thin wrapper around the official Elasticsearch client.

Provides the index lifecycle and bulk ingestion used by the sync pipeline:

* :py:meth:`index_exists`, :py:meth:`delete_index`, :py:meth:`create_index`
* :py:meth:`bulk_write` – send one prepared batch as a single ``_bulk`` request.
* :py:meth:`search` – query a synced index (used by the search client).

Every client-side or server-side rejection is reported as
:class:`IndexOperationFailed`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from elasticsearch import ApiError, Elasticsearch, TransportError

from src.bibsync.entities import BulkAction
from src.bibsync.errors import IndexOperationFailed

logger = logging.getLogger(__name__)


class ElasticSearchIndexer:
    """High-level helper for full-replace indexing of JSON documents."""

    def __init__(
        self,
        hosts: list[str] | str = "http://localhost:9200",
        *,
        api_key: Optional[str] = None,
        request_timeout: float = 30.0,
        client: Optional[Elasticsearch] = None,
    ) -> None:
        """Instantiate the indexer.

        Args:
            hosts: Single host or list of hosts where Elasticsearch is available.
            api_key: Optional API key for secured clusters.
            request_timeout: Per-request timeout in seconds.
            client: Pre-built client; *hosts*, *api_key* and *request_timeout*
                are ignored when given.
        """
        self._hosts = hosts
        if client is None:
            client = Elasticsearch(
                hosts, api_key=api_key, request_timeout=request_timeout
            )
        self._client = client

    def ping(self) -> None:
        """Verify the cluster is reachable.

        Raises:
            IndexOperationFailed: If the cluster does not answer.
        """
        try:
            alive = self._client.ping()
        except TransportError as exc:
            raise IndexOperationFailed(
                f"Unable to connect to Elasticsearch at {self._hosts}"
            ) from exc
        if not alive:
            raise IndexOperationFailed(
                f"Unable to connect to Elasticsearch at {self._hosts}"
            )

    def index_exists(self, index_name: str) -> bool:
        try:
            return bool(self._client.indices.exists(index=index_name))
        except (ApiError, TransportError) as exc:
            raise IndexOperationFailed(
                f"Cannot check whether index '{index_name}' exists: {exc}"
            ) from exc

    def delete_index(self, index_name: str) -> None:
        try:
            self._client.indices.delete(index=index_name)
        except (ApiError, TransportError) as exc:
            raise IndexOperationFailed(
                f"Deleting index '{index_name}' was rejected: {exc}"
            ) from exc
        logger.info("Deleted existing index '%s'.", index_name)

    def create_index(self, index_name: str) -> None:
        """Create an empty index with dynamic mappings."""
        try:
            self._client.indices.create(index=index_name)
        except (ApiError, TransportError) as exc:
            raise IndexOperationFailed(
                f"Creating index '{index_name}' was rejected: {exc}"
            ) from exc
        logger.info("Created index '%s'.", index_name)

    def bulk_write(self, actions: Sequence[BulkAction]) -> None:
        """Send *actions* as one bulk request.

        Args:
            actions: Ordered ``(metadata, serialized document)`` pairs. An empty
                sequence is accepted and results in no request.

        Raises:
            IndexOperationFailed: On transport failure or when any item of the
                batch is reported as failed.
        """
        if not actions:
            logger.debug("Empty bulk batch; nothing to send.")
            return

        operations: list[Any] = []
        for metadata, document in actions:
            operations.append(metadata)
            operations.append(document)

        try:
            response = self._client.bulk(operations=operations)
        except (ApiError, TransportError) as exc:
            raise IndexOperationFailed(f"Bulk request failed: {exc}") from exc

        if response.get("errors"):
            raise IndexOperationFailed(
                f"Bulk request rejected: {_first_item_error(response)}"
            )
        logger.info("Indexed %d documents.", len(actions))

    def search(self, index_name: str, body: dict[str, Any]) -> list[dict[str, Any]]:
        """Run a search request and return the raw hits."""
        try:
            response = self._client.search(index=index_name, body=body)
        except (ApiError, TransportError) as exc:
            raise IndexOperationFailed(
                f"Search on index '{index_name}' failed: {exc}"
            ) from exc
        return response.get("hits", {}).get("hits", [])


def _first_item_error(response: Any) -> str:
    for item in response.get("items", []):
        for result in item.values():
            if "error" in result:
                return f"document '{result.get('_id')}': {result['error']}"
    return "unknown item error"
