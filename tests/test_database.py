"""Tests for the search index."""

from pathlib import Path

import pytest

from appsintoss_docs.database import INDEX_FILENAME, IndexManager, truncate_content
from appsintoss_docs.exceptions import SearchIndexError
from appsintoss_docs.models import IndexDocument


@pytest.fixture
def index(tmp_path: Path) -> IndexManager:
    """Create an empty, open index.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        IndexManager with a freshly created index.
    """
    manager = IndexManager(tmp_path / "search-index")
    manager.create_index()
    return manager


@pytest.fixture
def sample_document() -> IndexDocument:
    """Create a sample document for testing.

    Returns:
        Sample IndexDocument instance.
    """
    return IndexDocument(
        id="0123456789abcdef",
        title="Toss Pay",
        content="Use the payment widget to charge a customer.",
        url="https://developers-apps-in-toss.toss.im/payments/toss-pay.md",
        category="Getting Started > Payments",
    )


def test_index_documents(index: IndexManager, sample_document: IndexDocument) -> None:
    """Test writing a document."""
    count = index.index_documents([sample_document])

    assert count == 1
    assert index.document_count() == 1


def test_get_by_id(index: IndexManager, sample_document: IndexDocument) -> None:
    """Test retrieving a document with all stored fields."""
    index.index_documents([sample_document])

    assert index.get_by_id(sample_document.id) == sample_document


def test_get_nonexistent_document(index: IndexManager) -> None:
    """Test retrieving a document that doesn't exist."""
    assert index.get_by_id("ffffffffffffffff") is None


def test_index_documents_replaces_repeated_id(index: IndexManager, sample_document: IndexDocument) -> None:
    """Test that a repeated id keeps only the last document."""
    updated = IndexDocument(id=sample_document.id, title="Toss Pay v2", content="Updated.")

    count = index.index_documents([sample_document, updated])

    assert count == 1
    assert index.document_count() == 1
    doc = index.get_by_id(sample_document.id)
    assert doc is not None
    assert doc.title == "Toss Pay v2"


def test_search_basic(index: IndexManager) -> None:
    """Test that only matching documents are returned."""
    index.index_documents(
        [
            IndexDocument(id="a", title="Toss Pay", content="Accept payments in a mini app."),
            IndexDocument(id="b", title="Navigation", content="Move between screens."),
        ]
    )

    results = index.search("payments")

    assert [doc.id for doc, _ in results] == ["a"]


def test_search_prefix(index: IndexManager) -> None:
    """Test that a query matches words it is a prefix of."""
    index.index_documents([IndexDocument(id="a", title="Authentication", content="Sign users in.")])

    results = index.search("auth")

    assert [doc.id for doc, _ in results] == ["a"]


def test_search_korean(index: IndexManager) -> None:
    """Test that Korean words are found by their parts."""
    index.index_documents(
        [
            IndexDocument(id="a", title="미니앱 출시하기", content="검수를 요청하세요."),
            IndexDocument(id="b", title="결제 연동", content="토스페이 결제를 붙입니다."),
        ]
    )

    assert [doc.id for doc, _ in index.search("미니앱")] == ["a"]
    assert [doc.id for doc, _ in index.search("토스페이")] == ["b"]


def test_search_fuzzy_content(index: IndexManager) -> None:
    """Test that a misspelled term still matches content."""
    index.index_documents([IndexDocument(id="a", title="Checkout", content="Complete the payment flow.")])

    results = index.search("paymnet")

    assert [doc.id for doc, _ in results] == ["a"]


def test_search_boost_order(index: IndexManager) -> None:
    """Test title > description > content = category for a single-field hit."""
    index.index_documents(
        [
            IndexDocument(id="title", title="widget", description="filler", content="filler", category="filler"),
            IndexDocument(id="desc", title="filler", description="widget", content="filler", category="filler"),
            IndexDocument(id="content", title="filler", description="filler", content="widget", category="filler"),
            IndexDocument(id="category", title="filler", description="filler", content="filler", category="widget"),
        ]
    )

    results = index.search("widget")
    scores = {doc.id: score for doc, score in results}

    assert len(results) == 4
    assert [doc.id for doc, _ in results[:2]] == ["title", "desc"]
    assert scores["title"] > scores["desc"] > scores["content"]
    assert scores["content"] == pytest.approx(scores["category"])


def test_search_respects_limit(index: IndexManager) -> None:
    """Test that no more than limit results are returned."""
    index.index_documents([IndexDocument(id=str(i), title=f"Guide {i}", content="guide") for i in range(5)])

    assert len(index.search("guide", limit=3)) == 3


def test_search_empty_query(index: IndexManager, sample_document: IndexDocument) -> None:
    """Test that a query without terms returns nothing."""
    index.index_documents([sample_document])

    assert index.search("   ") == []
    assert index.search("!!!") == []


def test_search_quotes_in_query(index: IndexManager, sample_document: IndexDocument) -> None:
    """Test that FTS syntax characters in the query are not interpreted."""
    index.index_documents([sample_document])

    results = index.search('"toss" AND pay*')

    assert [doc.id for doc, _ in results] == [sample_document.id]


def test_create_index_replaces_existing(index: IndexManager, sample_document: IndexDocument) -> None:
    """Test that creating an index discards the previous one."""
    index.index_documents([sample_document])

    index.create_index()

    assert index.document_count() == 0
    assert index.get_by_id(sample_document.id) is None


def test_open_existing_index(tmp_path: Path, sample_document: IndexDocument) -> None:
    """Test that a second manager can open and read an index."""
    writer = IndexManager(tmp_path / "search-index")
    writer.create_index()
    writer.index_documents([sample_document])
    writer.close()

    reader = IndexManager(tmp_path / "search-index")
    reader.open_index()

    assert reader.is_open
    assert reader.get_by_id(sample_document.id) == sample_document


def test_open_missing_index(tmp_path: Path) -> None:
    """Test that opening a missing index raises SearchIndexError."""
    manager = IndexManager(tmp_path / "missing")

    with pytest.raises(SearchIndexError, match="does not exist"):
        manager.open_index()
    assert not manager.is_open


def test_open_corrupt_index(tmp_path: Path) -> None:
    """Test that a file that is not a database cannot be opened."""
    index_path = tmp_path / "search-index"
    index_path.mkdir()
    (index_path / INDEX_FILENAME).write_bytes(b"this is not a sqlite database" * 10)

    manager = IndexManager(index_path)

    with pytest.raises(SearchIndexError):
        manager.open_index()
    assert not manager.is_open


def test_closed_index_rejects_reads(index: IndexManager) -> None:
    """Test that a closed index raises instead of reading."""
    index.close()

    with pytest.raises(SearchIndexError, match="not open"):
        index.search("anything")


def test_truncate_content_long() -> None:
    """Test that long content is cut at the limit and marked."""
    content = "가" * 150

    truncated = truncate_content(content, 100)

    assert truncated == "가" * 100 + "..."
    assert len(truncated) == 103


def test_truncate_content_short() -> None:
    """Test that content within the limit is returned unchanged."""
    assert truncate_content("short", 100) == "short"
    assert truncate_content("x" * 100, 100) == "x" * 100


def test_truncate_content_disabled() -> None:
    """Test that a non-positive limit disables truncation."""
    assert truncate_content("x" * 600, 0) == "x" * 600
