"""index_cli.py
Command-line entry point for rebuilding the Elasticsearch indices from Zotero.

This module only handles CLI parsing, logging and the exit status; the work is
done by :class:`src.bibsync.sync_pipeline.BibliographySyncPipeline`.
"""

from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from src.bibsync.elastic_search_indexer import ElasticSearchIndexer
from src.bibsync.errors import BibSyncError
from src.bibsync.progress import NullProgress, TqdmProgress
from src.bibsync.settings import Settings
from src.bibsync.sync_pipeline import BibliographySyncPipeline
from src.bibsync.zotero_source import ZoteroSource

logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create Elasticsearch indices from a Zotero group bibliography.",
    )
    parser.add_argument("--group-id", type=str, help="Zotero group identifier")
    parser.add_argument(
        "--index-name", type=str, help="Elasticsearch bibliography index name"
    )
    parser.add_argument(
        "--locale-index-name", type=str, help="Elasticsearch locale index name"
    )
    parser.add_argument(
        "--bulk-size", type=int, help="Items requested per Zotero page"
    )
    parser.add_argument(
        "--elastic-bulk-size", type=int, help="Documents per Elasticsearch bulk request"
    )
    parser.add_argument(
        "--es-hosts", nargs="+", help="One or more Elasticsearch hosts"
    )
    parser.add_argument(
        "--no-progress", action="store_true", help="Disable progress bars"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


def _settings_from_args(args: argparse.Namespace) -> Settings:
    """Build settings from the environment, overridden by explicit flags."""
    overrides = {
        "zotero_group_id": args.group_id,
        "elastic_index_name": args.index_name,
        "elastic_locale_index_name": args.locale_index_name,
        "zotero_bulk_size": args.bulk_size,
        "elastic_bulk_size": args.elastic_bulk_size,
    }
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


def main(argv: Optional[Sequence[str]] = None) -> None:  # noqa: D401
    """Parse CLI options and run one full synchronization."""

    args = _parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = _settings_from_args(args)
    indexer = ElasticSearchIndexer(
        args.es_hosts or settings.es_host,
        api_key=settings.es_api_key,
        request_timeout=settings.request_timeout,
    )
    progress = NullProgress() if args.no_progress else TqdmProgress()

    try:
        indexer.ping()
        with ZoteroSource(
            settings.zotero_api_key,
            base_url=settings.zotero_base_url,
            timeout=settings.request_timeout,
        ) as source:
            stats = BibliographySyncPipeline(source, indexer, settings, progress).run()
    except BibSyncError as exc:
        logger.error("Synchronization aborted: %s", exc)
        raise SystemExit(1) from exc

    logger.info(
        "Synchronization finished: %d items, %d locales, bulk requests %s.",
        stats.items_fetched,
        stats.locales_fetched,
        stats.bulk_requests,
    )


if __name__ == "__main__":
    main()
