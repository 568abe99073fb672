"""Tests for index lifecycle and search."""

import threading
import time
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from appsintoss_docs.config import PRIMARY
from appsintoss_docs.database import IndexManager
from appsintoss_docs.docid import generate_doc_id
from appsintoss_docs.exceptions import FetchError
from appsintoss_docs.fetcher import Fetcher, FetchResult
from appsintoss_docs.models import SearchOptions
from appsintoss_docs.searcher import LazySearcher, Searcher, SearcherRegistry

TOSS_PAY_ID = generate_doc_id(
    "Toss Pay",
    "https://developers-apps-in-toss.toss.im/payments/toss-pay.md",
    "Getting Started > Payments",
)
SDK_ID = generate_doc_id("SDK", "https://developers-apps-in-toss.toss.im/reference/sdk.md", "Reference")


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Return a temporary cache root."""
    return tmp_path / "ax"


@pytest.fixture
def built_cache(cache_dir: Path, fetcher: Mock) -> Path:
    """Build the primary index once and close it.

    Args:
        cache_dir: Cache root fixture.
        fetcher: Fetcher double serving the sample export with ETag "v1".

    Returns:
        Cache root holding a built index and its metadata.
    """
    with Searcher(PRIMARY, cache_dir=cache_dir, fetcher=fetcher) as searcher:
        searcher.ensure_index()
    return cache_dir


def _revalidating_fetcher(etag: str, changed: bool) -> Mock:
    fake = Mock(spec=Fetcher)
    fake.check_etag.return_value = (etag, changed)
    return fake


def test_first_build_saves_etag(cache_dir: Path, fetcher: Mock) -> None:
    """Test that a missing index is built without a revalidation request."""
    with Searcher(PRIMARY, cache_dir=cache_dir, fetcher=fetcher) as searcher:
        searcher.ensure_index()

        assert searcher.index_manager.document_count() == 2
        assert searcher.cache_manager.get_cached_etag() == '"v1"'
    fetcher.check_etag.assert_not_called()
    fetcher.fetch.assert_called_once_with(PRIMARY.flat_url)


def test_unchanged_index_is_reused(built_cache: Path) -> None:
    """Test that a 304 leads to zero export fetches and zero index writes."""
    fetcher = _revalidating_fetcher('"v1"', changed=False)

    with (
        patch.object(IndexManager, "create_index") as create_index,
        patch.object(IndexManager, "index_documents") as index_documents,
        Searcher(PRIMARY, cache_dir=built_cache, fetcher=fetcher) as searcher,
    ):
        searcher.ensure_index()

        assert searcher.get_document(TOSS_PAY_ID) is not None
    fetcher.check_etag.assert_called_once_with(PRIMARY.flat_url, '"v1"')
    fetcher.fetch.assert_not_called()
    create_index.assert_not_called()
    index_documents.assert_not_called()


def test_changed_index_is_rebuilt(built_cache: Path, fetcher: Mock, flat_export_v2: str) -> None:
    """Test that a changed export replaces the old index entirely."""
    marker = built_cache / PRIMARY.index_subdir / "stale-marker"
    marker.write_text("left over", encoding="utf-8")
    fetcher.check_etag.return_value = ('"v2"', True)
    fetcher.fetch.return_value = FetchResult(content=flat_export_v2, etag='"v2"')

    with Searcher(PRIMARY, cache_dir=built_cache, fetcher=fetcher) as searcher:
        searcher.ensure_index()

        assert not marker.exists()
        assert searcher.get_document(TOSS_PAY_ID) is None
        sdk = searcher.get_document(SDK_ID)
        assert sdk is not None
        assert sdk.title == "SDK"
        assert searcher.cache_manager.get_cached_etag() == '"v2"'


def test_changed_index_keeps_revalidation_etag(built_cache: Path, fetcher: Mock, flat_export_v2: str) -> None:
    """Test that the HEAD ETag is saved when the export response carries none."""
    fetcher.check_etag.return_value = ('"v2"', True)
    fetcher.fetch.return_value = FetchResult(content=flat_export_v2, etag="")

    with Searcher(PRIMARY, cache_dir=built_cache, fetcher=fetcher) as searcher:
        searcher.ensure_index()

        assert searcher.get_document(SDK_ID) is not None
        assert searcher.cache_manager.get_cached_etag() == '"v2"'


def test_revalidation_failure_uses_existing_index(built_cache: Path) -> None:
    """Test that an unreachable server does not prevent searching a cached index."""
    fetcher = Mock(spec=Fetcher)
    fetcher.check_etag.side_effect = FetchError(PRIMARY.flat_url, cause=OSError("network down"))

    with Searcher(PRIMARY, cache_dir=built_cache, fetcher=fetcher) as searcher:
        searcher.ensure_index()

        assert [result.id for result in searcher.search("toss pay")][0] == TOSS_PAY_ID
    fetcher.fetch.assert_not_called()


def test_corrupt_index_is_rebuilt(built_cache: Path, fetcher: Mock) -> None:
    """Test that an unchanged but unreadable index is rebuilt."""
    (built_cache / PRIMARY.index_subdir / "index.db").write_bytes(b"garbage" * 100)
    fetcher.check_etag.return_value = ('"v1"', False)
    fetcher.fetch.reset_mock()

    with Searcher(PRIMARY, cache_dir=built_cache, fetcher=fetcher) as searcher:
        searcher.ensure_index()

        assert searcher.get_document(TOSS_PAY_ID) is not None
    fetcher.fetch.assert_called_once()


def test_failed_build_leaves_no_index(cache_dir: Path, fetcher: Mock) -> None:
    """Test that a failed first build raises and leaves no index directory."""
    fetcher.fetch.side_effect = FetchError(PRIMARY.flat_url, status_code=502)

    with Searcher(PRIMARY, cache_dir=cache_dir, fetcher=fetcher) as searcher:
        with pytest.raises(FetchError):
            searcher.ensure_index()

        assert not searcher.cache_manager.index_exists()
        assert searcher.cache_manager.load_metadata() is None


def test_empty_etag_is_not_saved(cache_dir: Path, fetcher: Mock, flat_export: str) -> None:
    """Test that a server without ETags leaves no metadata behind."""
    fetcher.fetch.return_value = FetchResult(content=flat_export, etag="")

    with Searcher(PRIMARY, cache_dir=cache_dir, fetcher=fetcher) as searcher:
        searcher.ensure_index()

        assert searcher.cache_manager.load_metadata() is None


def test_search_truncates_content(built_cache: Path, fetcher: Mock) -> None:
    """Test that search results carry truncated content and positive scores."""
    with Searcher(PRIMARY, cache_dir=built_cache, fetcher=fetcher) as searcher:
        searcher.index_manager.open_index()

        results = searcher.search("mini apps", SearchOptions(limit=5, max_content_length=10))

    assert results[0].title == "Introduction"
    assert results[0].content == "Mini apps ..."
    assert results[0].score > 0


def test_search_defaults_for_non_positive_options(built_cache: Path, fetcher: Mock) -> None:
    """Test that zero limit and length fall back to the defaults."""
    with Searcher(PRIMARY, cache_dir=built_cache, fetcher=fetcher) as searcher:
        searcher.index_manager.open_index()

        results = searcher.search("toss", SearchOptions(limit=0, max_content_length=0))

    assert len(results) == 2
    assert all(not result.content.endswith("...") for result in results)


def test_get_document_full_content(built_cache: Path, fetcher: Mock) -> None:
    """Test that a fetched document has its full content and score 0."""
    with Searcher(PRIMARY, cache_dir=built_cache, fetcher=fetcher) as searcher:
        searcher.index_manager.open_index()

        document = searcher.get_document(TOSS_PAY_ID)

    assert document is not None
    assert document.content == "Use the payment widget to charge a customer."
    assert document.category == "Getting Started > Payments"
    assert document.score == 0.0


def test_lazy_searcher_initialises_once() -> None:
    """Test that concurrent first calls share one initialisation."""
    searcher = Mock(spec=Searcher)
    searcher.ensure_index.side_effect = lambda: time.sleep(0.05)
    factory = Mock(return_value=searcher)
    lazy = LazySearcher(factory)
    results: list[Searcher] = []

    threads = [threading.Thread(target=lambda: results.append(lazy.get())) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results == [searcher] * 8
    factory.assert_called_once()
    searcher.ensure_index.assert_called_once()


def test_lazy_searcher_retries_after_failure() -> None:
    """Test that a failed initialisation is not cached."""
    failing = Mock(spec=Searcher)
    failing.ensure_index.side_effect = FetchError(PRIMARY.flat_url, status_code=503)
    working = Mock(spec=Searcher)
    factory = Mock(side_effect=[failing, working])
    lazy = LazySearcher(factory)

    with pytest.raises(FetchError):
        lazy.get()

    assert lazy.get() is working
    assert lazy.get() is working
    assert factory.call_count == 2
    failing.close.assert_called_once()


def test_lazy_searcher_close() -> None:
    """Test that closing releases the searcher and allows a fresh start."""
    searcher = Mock(spec=Searcher)
    factory = Mock(return_value=searcher)
    lazy = LazySearcher(factory)

    lazy.get()
    lazy.close()
    lazy.get()

    searcher.close.assert_called_once()
    assert factory.call_count == 2


def test_registry_builds_each_corpus_once(cache_dir: Path, fetcher: Mock) -> None:
    """Test that the registry hands out one ready searcher per corpus."""
    registry = SearcherRegistry({PRIMARY.name: PRIMARY}, cache_dir=cache_dir, fetcher=fetcher)

    first = registry.get("docs")
    second = registry.get("docs")

    assert first is second
    assert first.index_manager.is_open
    fetcher.fetch.assert_called_once()
    registry.close()
    assert not first.index_manager.is_open


def test_registry_unknown_corpus(cache_dir: Path, fetcher: Mock) -> None:
    """Test that an unknown corpus name raises KeyError."""
    registry = SearcherRegistry({PRIMARY.name: PRIMARY}, cache_dir=cache_dir, fetcher=fetcher)

    with pytest.raises(KeyError, match="Unknown corpus"):
        registry.get("tds-desktop")
