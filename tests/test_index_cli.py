import pytest
from pydantic import ValidationError

from conftest import FakeIndex, FakeSource, make_items
from src.bibsync import index_cli
from src.bibsync.errors import SourceUnavailable


class ContextSource(FakeSource):
    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return None


class PingableIndex(FakeIndex):
    def ping(self):
        return None


@pytest.fixture
def env(monkeypatch):
    monkeypatch.setenv("ZOTERO_API_KEY", "secret")
    monkeypatch.setenv("ZOTERO_GROUP_ID", "4242")


def _wire(monkeypatch, source, index):
    monkeypatch.setattr(index_cli, "ZoteroSource", lambda *args, **kwargs: source)
    monkeypatch.setattr(index_cli, "ElasticSearchIndexer", lambda *args, **kwargs: index)


def test_flags_override_environment(env, monkeypatch):
    monkeypatch.setenv("ELASTIC_BULK_SIZE", "10")
    args = index_cli._parse_args(["--group-id", "7", "--elastic-bulk-size", "5"])

    settings = index_cli._settings_from_args(args)

    assert settings.zotero_group_id == "7"
    assert settings.elastic_bulk_size == 5
    assert settings.zotero_api_key == "secret"


def test_successful_run_rebuilds_both_indices(env, monkeypatch):
    source = ContextSource(make_items(3))
    index = PingableIndex()
    _wire(monkeypatch, source, index)

    index_cli.main(["--no-progress", "--bulk-size", "2"])

    assert set(index.indices["zotero"]) == {"ITEM0000", "ITEM0001", "ITEM0002"}
    assert set(index.indices["zotero-locales"]) == {"en-US"}


def test_failure_exits_with_non_zero_status(env, monkeypatch):
    class Unreachable(ContextSource):
        def fetch_locales(self):
            raise SourceUnavailable("down")

    index = PingableIndex()
    _wire(monkeypatch, Unreachable([]), index)

    with pytest.raises(SystemExit) as excinfo:
        index_cli.main(["--no-progress"])

    assert excinfo.value.code == 1
    assert index.calls == []


@pytest.mark.parametrize("bulk_size", ["0", "101", "150"])
def test_page_size_outside_zotero_limit_is_rejected(env, monkeypatch, bulk_size):
    monkeypatch.setenv("ZOTERO_BULK_SIZE", bulk_size)

    with pytest.raises(ValidationError, match="zotero_bulk_size"):
        index_cli._settings_from_args(index_cli._parse_args([]))


def test_page_size_flag_above_zotero_limit_is_rejected(env):
    args = index_cli._parse_args(["--bulk-size", "150"])

    with pytest.raises(ValidationError, match="zotero_bulk_size"):
        index_cli._settings_from_args(args)


def test_largest_zotero_page_size_is_accepted(env, monkeypatch):
    monkeypatch.setenv("ZOTERO_BULK_SIZE", "100")

    settings = index_cli._settings_from_args(index_cli._parse_args([]))

    assert settings.zotero_bulk_size == 100
