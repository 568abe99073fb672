"""SQLite FTS5 search index for documentation corpora."""

import logging
import shutil
import sqlite3
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from pathlib import Path

from appsintoss_docs.analysis import analyze_for_index, analyze_for_query, auto_fuzziness, edit_distance
from appsintoss_docs.exceptions import SearchIndexError
from appsintoss_docs.models import IndexDocument

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.db"

TRUNCATION_MARKER = "..."

# Column order of documents_fts, used for bm25() weights
FTS_COLUMNS = ("title", "content", "description", "category")

FIELD_BOOSTS = {
    "title": 5.0,
    "content": 1.0,
    "description": 1.5,
    "category": 1.0,
}

FUZZY_FIELDS = frozenset({"description", "content"})
FUZZY_PREFIX_LENGTH = 1
MAX_FUZZY_EXPANSIONS = 50

SCHEMA = """
    CREATE TABLE IF NOT EXISTS documents (
        pk INTEGER PRIMARY KEY,
        id TEXT UNIQUE NOT NULL,
        title TEXT NOT NULL,
        content TEXT NOT NULL DEFAULT '',
        description TEXT NOT NULL DEFAULT '',
        url TEXT NOT NULL DEFAULT '',
        category TEXT NOT NULL DEFAULT ''
    );

    CREATE INDEX IF NOT EXISTS idx_documents_url ON documents(url);

    CREATE VIRTUAL TABLE IF NOT EXISTS documents_fts USING fts5(
        title,
        content,
        description,
        category,
        tokenize = "unicode61 remove_diacritics 0 tokenchars '_'"
    );

    CREATE VIRTUAL TABLE IF NOT EXISTS documents_vocab USING fts5vocab(documents_fts, 'col');
"""

_REQUIRED_TABLES = frozenset({"documents", "documents_fts", "documents_vocab"})


def truncate_content(content: str, max_length: int) -> str:
    """Cut content to ``max_length`` code points, appending a marker when cut.

    Args:
        content: Full document content.
        max_length: Maximum number of characters kept; ``<= 0`` disables truncation.

    Returns:
        The content unchanged if it fits, otherwise its prefix followed by ``...``.
    """
    if max_length <= 0 or len(content) <= max_length:
        return content
    return content[:max_length] + TRUNCATION_MARKER


def _quote(term: str) -> str:
    return '"' + term.replace('"', '""') + '"'


class IndexManager:
    """Owns the on-disk index of one corpus instance.

    The index directory holds a single SQLite database with a ``documents``
    table for stored fields and an FTS5 table holding the analyzed token
    streams of title, content, description and category. The url is stored
    verbatim and only used as an exact key.
    """

    def __init__(self, index_path: Path) -> None:
        """Initialise index manager.

        Args:
            index_path: Directory that holds the index.
        """
        self.index_path = Path(index_path)
        self.db_path = self.index_path / INDEX_FILENAME
        self._is_open = False

    @property
    def is_open(self) -> bool:
        """Whether the index has been created or opened and not closed since."""
        return self._is_open

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections.

        Yields:
            SQLite connection with Row factory enabled.

        Raises:
            SearchIndexError: If the index is not open or the database fails.
        """
        if not self._is_open:
            msg = f"Search index is not open: {self.index_path}"
            raise SearchIndexError(msg)

        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            msg = f"Cannot connect to search index {self.db_path}: {exc}"
            raise SearchIndexError(msg) from exc

        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.Error as exc:
            msg = f"Search index operation failed on {self.db_path}: {exc}"
            raise SearchIndexError(msg) from exc
        finally:
            conn.close()

    def create_index(self) -> None:
        """Create an empty index, replacing anything already at the path.

        Raises:
            SearchIndexError: If the directory or schema cannot be created.
        """
        self._is_open = False
        try:
            if self.index_path.exists():
                shutil.rmtree(self.index_path)
            self.index_path.mkdir(parents=True)
        except OSError as exc:
            msg = f"Cannot create index directory {self.index_path}: {exc}"
            raise SearchIndexError(msg) from exc

        self._is_open = True
        with self._get_connection() as conn:
            conn.executescript(SCHEMA)
            conn.commit()
        logger.debug("Created search index at %s", self.index_path)

    def open_index(self) -> None:
        """Open an existing index.

        Raises:
            SearchIndexError: If the index is missing, corrupt or has no schema.
        """
        if not self.db_path.is_file():
            msg = f"Search index does not exist: {self.db_path}"
            raise SearchIndexError(msg)

        self._is_open = True
        try:
            with self._get_connection() as conn:
                rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
                conn.execute("SELECT count(*) FROM documents_fts").fetchone()
        except SearchIndexError:
            self._is_open = False
            raise

        missing = _REQUIRED_TABLES - {row["name"] for row in rows}
        if missing:
            self._is_open = False
            msg = f"Search index {self.db_path} is missing tables: {', '.join(sorted(missing))}"
            raise SearchIndexError(msg)
        logger.debug("Opened search index at %s", self.index_path)

    def close(self) -> None:
        """Close the index; further reads or writes fail until it is reopened."""
        self._is_open = False

    def index_documents(self, documents: Iterable[IndexDocument]) -> int:
        """Write a batch of documents in a single transaction.

        Either every document of the batch is stored or none is. A document
        whose id repeats within the batch replaces the earlier one.

        Args:
            documents: Documents to store.

        Returns:
            Number of distinct documents written.

        Raises:
            SearchIndexError: If the write fails.
        """
        batch = {doc.id: doc for doc in documents}

        with self._get_connection() as conn:
            try:
                for doc in batch.values():
                    self._write_document(conn, doc)
                conn.commit()
            except sqlite3.Error:
                conn.rollback()
                raise
        logger.info("Indexed %d documents into %s", len(batch), self.index_path)
        return len(batch)

    def _write_document(self, conn: sqlite3.Connection, doc: IndexDocument) -> None:
        existing = conn.execute("SELECT pk FROM documents WHERE id = ?", (doc.id,)).fetchone()
        if existing is not None:
            conn.execute("DELETE FROM documents_fts WHERE rowid = ?", (existing["pk"],))
            conn.execute("DELETE FROM documents WHERE pk = ?", (existing["pk"],))

        cursor = conn.execute(
            """
            INSERT INTO documents (id, title, content, description, url, category)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (doc.id, doc.title, doc.content, doc.description, doc.url, doc.category),
        )
        conn.execute(
            """
            INSERT INTO documents_fts (rowid, title, content, description, category)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                cursor.lastrowid,
                " ".join(analyze_for_index(doc.title)),
                " ".join(analyze_for_index(doc.content)),
                " ".join(analyze_for_index(doc.description)),
                " ".join(analyze_for_index(doc.category)),
            ),
        )

    def search(self, query: str, limit: int = 10) -> list[tuple[IndexDocument, float]]:
        """Run a boosted multi-field query.

        The query is an OR of four per-field clauses: title (boost 5.0),
        description (1.5, fuzzy), content (1.0, fuzzy) and category (1.0).
        Scores are BM25 with per-column weights and are only comparable within
        one result set.

        Args:
            query: User query string.
            limit: Maximum number of results.

        Returns:
            List of (document, score) pairs in descending score order.

        Raises:
            SearchIndexError: If the index is not open or the query fails.
        """
        terms = analyze_for_query(query)
        if not terms or limit <= 0:
            return []

        weights = ", ".join(str(FIELD_BOOSTS[column]) for column in FTS_COLUMNS)
        with self._get_connection() as conn:
            match_expression = self._build_match_expression(conn, terms)
            cursor = conn.execute(
                f"""
                SELECT
                    d.id,
                    d.title,
                    d.content,
                    d.description,
                    d.url,
                    d.category,
                    bm25(documents_fts, {weights}) AS score
                FROM documents_fts
                JOIN documents d ON documents_fts.rowid = d.pk
                WHERE documents_fts MATCH ?
                ORDER BY score
                LIMIT ?
                """,  # noqa: S608
                (match_expression, limit),
            )
            results = []
            for row in cursor.fetchall():
                results.append((self._row_to_document(row), -row["score"]))  # bm25 scores are negative
            return results

    def _build_match_expression(self, conn: sqlite3.Connection, terms: list[str]) -> str:
        """Build the FTS5 MATCH expression for the analyzed query terms.

        Args:
            conn: Open connection, used to look up fuzzy candidates.
            terms: Query terms from the query analyzer.

        Returns:
            Expression of the form ``title : (...) OR description : (...) OR ...``.
        """
        clauses = []
        for column in ("title", "description", "content", "category"):
            column_terms: list[str] = []
            for term in terms:
                if column in FUZZY_FIELDS:
                    column_terms.extend(self._fuzzy_terms(conn, column, term))
                else:
                    column_terms.append(term)
            unique_terms = dict.fromkeys(column_terms)
            clauses.append(f"{column} : ({' OR '.join(_quote(term) for term in unique_terms)})")
        return " OR ".join(clauses)

    def _fuzzy_terms(self, conn: sqlite3.Connection, column: str, term: str) -> list[str]:
        """Expand a term to the indexed terms of a column within its edit distance.

        A term that is indexed in the column as-is needs no expansion. Otherwise
        candidates must share the first ``FUZZY_PREFIX_LENGTH`` characters and
        lie within :func:`auto_fuzziness` edits; the closest ones are kept.
        """
        fuzziness = auto_fuzziness(term)
        if fuzziness == 0 or len(term) <= FUZZY_PREFIX_LENGTH:
            return [term]

        prefix = term[:FUZZY_PREFIX_LENGTH]
        rows = conn.execute(
            "SELECT term FROM documents_vocab WHERE col = ? AND term >= ? AND term < ?",
            (column, prefix, prefix + "\U0010ffff"),
        ).fetchall()
        vocabulary = {row["term"] for row in rows}
        if term in vocabulary:
            return [term]

        candidates = []
        for candidate in vocabulary:
            distance = edit_distance(term, candidate, fuzziness)
            if distance <= fuzziness:
                candidates.append((distance, candidate))
        candidates.sort()
        return [term] + [candidate for _, candidate in candidates[:MAX_FUZZY_EXPANSIONS]]

    def get_by_id(self, doc_id: str) -> IndexDocument | None:
        """Retrieve a document by its exact identifier.

        Args:
            doc_id: Document identifier.

        Returns:
            IndexDocument instance or None if not found.
        """
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT id, title, content, description, url, category FROM documents WHERE id = ?",
                (doc_id,),
            ).fetchone()
            if row:
                return self._row_to_document(row)
            return None

    def document_count(self) -> int:
        """Return the total number of indexed documents."""
        with self._get_connection() as conn:
            result = conn.execute("SELECT COUNT(*) FROM documents").fetchone()
            return int(result[0]) if result else 0

    @staticmethod
    def _row_to_document(row: sqlite3.Row) -> IndexDocument:
        return IndexDocument(
            id=row["id"],
            title=row["title"],
            content=row["content"],
            description=row["description"],
            url=row["url"],
            category=row["category"],
        )
