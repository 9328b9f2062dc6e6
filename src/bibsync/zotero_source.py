"""Client for the parts of the Zotero Web API the sync job reads.

Provides three blocking operations, each a single HTTP request:

* :py:meth:`ZoteroSource.fetch_locales` – the locale table of the global schema.
* :py:meth:`ZoteroSource.fetch_total_count` – size of a group's top-level items.
* :py:meth:`ZoteroSource.fetch_page` – one ``start``/``limit`` page of items.

Failures are never retried; they surface as :class:`SourceUnavailable` or
:class:`MalformedResponse`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from src.bibsync.entities import BibliographyItem, LocaleEntry
from src.bibsync.errors import MalformedResponse, SourceUnavailable

logger = logging.getLogger(__name__)

TOTAL_RESULTS_HEADER = "Total-Results"


class ZoteroSource:
    """Paginated reader for one Zotero group library plus the schema endpoint."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.zotero.org",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Create the underlying HTTP client.

        Args:
            api_key: Zotero API key sent as a bearer token.
            base_url: Root of the Zotero Web API.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests pass a mock transport).
        """
        self._client = httpx.Client(
            base_url=base_url,
            headers={
                "Zotero-API-Version": "3",
                "Authorization": f"Bearer {api_key}",
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ZoteroSource":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def fetch_locales(self) -> dict[str, LocaleEntry]:
        """Return the ``locales`` table of the Zotero schema, keyed by locale code."""
        body = self._get_json("/schema", {"format": "json"})
        if not isinstance(body, dict) or "locales" not in body:
            raise MalformedResponse("Zotero schema response has no 'locales' field")
        locales = body["locales"]
        if not isinstance(locales, dict):
            raise MalformedResponse(
                f"Zotero schema 'locales' is a {type(locales).__name__}, not a mapping"
            )
        logger.info("Fetched %d Zotero locales.", len(locales))
        return locales

    def fetch_total_count(self, collection_id: str) -> int:
        """Return the number of top-level items in the group *collection_id*.

        A one-item page is requested only for its ``Total-Results`` header; the
        item itself is discarded.
        """
        response = self._get(self._items_path(collection_id), _page_params(0, 1))
        raw_total = response.headers.get(TOTAL_RESULTS_HEADER)
        if raw_total is None:
            raise MalformedResponse(
                f"Zotero response for group {collection_id} has no "
                f"{TOTAL_RESULTS_HEADER} header"
            )
        try:
            total = int(raw_total)
        except ValueError as exc:
            raise MalformedResponse(
                f"Invalid {TOTAL_RESULTS_HEADER} header: {raw_total!r}"
            ) from exc
        logger.info("Group %s holds %d top-level items.", collection_id, total)
        return total

    def fetch_page(
        self, collection_id: str, offset: int, limit: int
    ) -> list[BibliographyItem]:
        """Return up to *limit* items of group *collection_id* starting at *offset*.

        Each Zotero entry is reduced to its ``data`` object, which carries the
        item ``key`` along with every bibliographic field.
        """
        body = self._get_json(
            self._items_path(collection_id), _page_params(offset, limit)
        )
        if not isinstance(body, list):
            raise MalformedResponse(
                f"Expected a list of items at offset {offset}, got {type(body).__name__}"
            )
        items = [_pluck_data(entry) for entry in body]
        logger.debug(
            "Fetched %d items of group %s at offset %d.",
            len(items),
            collection_id,
            offset,
        )
        return items

    @staticmethod
    def _items_path(collection_id: str) -> str:
        return f"/groups/{collection_id}/items/top"

    def _get(self, path: str, params: dict[str, Any]) -> httpx.Response:
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise SourceUnavailable(f"Zotero request {path} failed: {exc}") from exc
        return response

    def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        response = self._get(path, params)
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponse(f"Zotero response for {path} is not JSON") from exc


def _page_params(offset: int, limit: int) -> dict[str, Any]:
    return {"start": offset, "limit": limit, "format": "json"}


def _pluck_data(entry: Any) -> BibliographyItem:
    """Return the ``data`` object of a Zotero item entry."""
    data = entry.get("data") if isinstance(entry, dict) else None
    if not isinstance(data, dict) or "key" not in data:
        raise MalformedResponse("Zotero item entry has no 'data' object with a 'key'")
    return data
