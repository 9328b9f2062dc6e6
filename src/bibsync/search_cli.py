"""Interactive search over a synced Zotero bibliography index.

Connection defaults come from :class:`src.bibsync.settings.SearchSettings`
(environment / ``.env``), so the client reaches the same cluster, with the
same credentials, as the sync job.
"""

from __future__ import annotations

import argparse
import logging
from typing import Iterator, Optional, Sequence

from src.bibsync.elastic_search_indexer import ElasticSearchIndexer
from src.bibsync.errors import BibSyncError
from src.bibsync.fields import (
    BODY_FIELDS,
    BOOSTED_FIELDS,
    FOOTER_FIELDS,
    HEADER_FIELDS,
    SEARCHABLE_FIELDS,
    render_section,
)
from src.bibsync.settings import SearchSettings

logger = logging.getLogger(__name__)

_QUIT_WORDS = {"exit", "quit"}


def _parse_args(
    settings: SearchSettings, argv: Optional[Sequence[str]] = None
) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Interactive search over the synced bibliography.")
    parser.add_argument("--index-name", default=settings.elastic_index_name, help="Elasticsearch index name")
    parser.add_argument("--es-hosts", nargs="+", default=[settings.es_host], help="Elasticsearch hosts")
    parser.add_argument("--size", type=int, default=settings.top_k, help="Number of hits shown per query")
    return parser.parse_args(argv)


def build_query(query: str, size: int) -> dict:
    """Construct a multi-field query; boosted fields weigh twice as much.

    ``lenient`` keeps a text query from failing on fields that dynamic
    mapping typed as dates or numbers.
    """
    fields = [f"{name}^2" if name in BOOSTED_FIELDS else name for name in SEARCHABLE_FIELDS]
    return {
        "query": {
            "multi_match": {
                "query": query,
                "fields": fields,
                "type": "best_fields",
                "fuzziness": "AUTO",
                "lenient": True,
            }
        },
        "size": size,
    }


def format_hit(rank: int, hit: dict) -> list[str]:
    source = hit["_source"]
    lines = []
    header = render_section(source, HEADER_FIELDS)
    if header:
        lines.append(header)
    lines.append(render_section(source, BODY_FIELDS) or "<no title>")
    footer = render_section(source, FOOTER_FIELDS)
    if footer:
        lines.append(footer)
    lines[0] = f"{rank}. {lines[0]}"
    return [lines[0]] + [f"   {line}" for line in lines[1:]]


def search_lines(
    indexer: ElasticSearchIndexer, index_name: str, query: str, size: int
) -> list[str]:
    """Return the printable result block for one query."""
    hits = indexer.search(index_name, build_query(query, size))
    if not hits:
        return ["No matches"]
    lines: list[str] = []
    for rank, hit in enumerate(hits, 1):
        lines.extend(format_hit(rank, hit))
    return lines


def _prompt() -> Iterator[str]:
    while True:
        try:
            query = input("query> ").strip()
        except (KeyboardInterrupt, EOFError):
            print()
            return
        if not query or query.lower() in _QUIT_WORDS:
            return
        yield query


def main(argv: Optional[Sequence[str]] = None) -> None:
    settings = SearchSettings()
    args = _parse_args(settings, argv)
    indexer = ElasticSearchIndexer(
        args.es_hosts,
        api_key=settings.es_api_key,
        request_timeout=settings.request_timeout,
    )

    try:
        indexer.ping()
        for query in _prompt():
            print("\n".join(search_lines(indexer, args.index_name, query, args.size)))
            print()
    except BibSyncError as exc:
        logger.error("Search aborted: %s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
