from __future__ import annotations

from typing import Optional
from dotenv import load_dotenv

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv(override=True)

# The Zotero API never returns more than this many items per page.
ZOTERO_MAX_PAGE_SIZE = 100


class ElasticSettings(BaseSettings):
    """Elasticsearch connection shared by the sync job and the search client.

    Fields
    ------
    elastic_index_name
        Elasticsearch index holding the bibliography items.
    es_host
        Elasticsearch HTTP endpoint.
    es_api_key
        Optional Elasticsearch API key.
    request_timeout
        Timeout in seconds applied to outgoing requests.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    elastic_index_name: str = Field("zotero")
    es_host: str = Field("http://localhost:9200")
    es_api_key: Optional[str] = Field(None)
    request_timeout: float = Field(30.0, gt=0)


class SearchSettings(ElasticSettings):
    """Runtime knobs for the interactive *search_cli* utility.

    Fields
    ------
    top_k
        Number of hits displayed per query.
    """

    top_k: int = Field(5, ge=1)


class Settings(ElasticSettings):
    """Synchronization job configuration.

    No instance is created at import time; the CLI builds one and hands it to
    :class:`src.bibsync.sync_pipeline.BibliographySyncPipeline`.

    Fields
    ------
    zotero_api_key
        Zotero Web API key with read access to the group library.
    zotero_group_id
        Identifier of the Zotero group whose top-level items are synced.
    zotero_bulk_size
        Items requested per Zotero page, at most ``ZOTERO_MAX_PAGE_SIZE``.
    zotero_base_url
        Root of the Zotero Web API.
    elastic_locale_index_name
        Elasticsearch index receiving one document per Zotero locale.
    elastic_bulk_size
        Bibliography documents per bulk request.
    """

    zotero_api_key: str = Field(...)
    zotero_group_id: str = Field(...)
    zotero_bulk_size: int = Field(50, ge=1, le=ZOTERO_MAX_PAGE_SIZE)
    zotero_base_url: str = Field("https://api.zotero.org")

    elastic_locale_index_name: str = Field("zotero-locales")
    elastic_bulk_size: int = Field(100, ge=1)
