"""Search entry point for one documentation corpus."""

import logging
import threading
from collections.abc import Callable
from pathlib import Path
from types import TracebackType

from appsintoss_docs.cache import CacheManager
from appsintoss_docs.config import CORPORA, DEFAULT_LIMIT, DEFAULT_MAX_CONTENT_LENGTH, CorpusConfig, default_cache_dir
from appsintoss_docs.database import IndexManager, truncate_content
from appsintoss_docs.exceptions import FetchError, SearchIndexError
from appsintoss_docs.fetcher import Fetcher
from appsintoss_docs.indexer import DocsIndexer
from appsintoss_docs.models import IndexDocument, SearchOptions, SearchResult

logger = logging.getLogger(__name__)


class Searcher:
    """Keeps the index of one corpus current and answers queries against it."""

    def __init__(
        self,
        corpus: CorpusConfig,
        cache_dir: Path | None = None,
        fetcher: Fetcher | None = None,
    ) -> None:
        """Initialise searcher.

        Args:
            corpus: Corpus to search.
            cache_dir: Cache root; defaults to :func:`default_cache_dir`.
            fetcher: Fetcher shared by revalidation and rebuilds.
        """
        self.corpus = corpus
        self.fetcher = fetcher or Fetcher()
        self.cache_manager = CacheManager(
            cache_dir or default_cache_dir(),
            metadata_filename=corpus.metadata_filename,
            index_subdir=corpus.index_subdir,
            fetcher=self.fetcher,
        )
        self.index_manager = IndexManager(self.cache_manager.index_path)
        self.indexer = DocsIndexer(corpus, self.index_manager, self.fetcher)

    def __enter__(self) -> "Searcher":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def ensure_index(self) -> None:
        """Make sure an up-to-date index is open, rebuilding it if needed.

        An existing index is revalidated with a conditional HEAD request. If
        that request fails, the existing index is reused when it can still be
        opened: a stale answer is preferred over no answer.

        Raises:
            FetchError: If a rebuild is needed and the export cannot be fetched.
            SearchIndexError: If a rebuild is needed and the index cannot be written.
        """
        if not self.cache_manager.index_exists():
            logger.info("No %s index found, building", self.corpus.name)
            self._build()
            return

        try:
            current_etag, changed = self.cache_manager.check_etag(self.corpus.flat_url)
        except FetchError as exc:
            logger.warning("Could not revalidate %s index: %s", self.corpus.name, exc)
            if self._try_open():
                return
            self._build()
            return

        if not changed:
            if self._try_open():
                logger.debug("%s index is up to date", self.corpus.name)
                return
            logger.warning("Existing %s index is unusable, rebuilding", self.corpus.name)
        else:
            logger.info("%s documentation changed, rebuilding index", self.corpus.name)

        self.cache_manager.delete_index()
        self._build(current_etag)

    def _try_open(self) -> bool:
        try:
            self.index_manager.open_index()
        except SearchIndexError as exc:
            logger.debug("Cannot open %s index: %s", self.corpus.name, exc)
            return False
        return True

    def _build(self, fallback_etag: str = "") -> None:
        """Build a fresh index and record the ETag it was built from.

        Args:
            fallback_etag: ETag from the revalidation request, saved when the
                export response itself carries none.
        """
        try:
            etag = self.indexer.build() or fallback_etag
        except Exception:
            self.index_manager.close()
            self.cache_manager.delete_index()
            raise

        if etag:
            self.cache_manager.save_etag(self.corpus.flat_url, etag)

    def search(self, query: str, options: SearchOptions | None = None) -> list[SearchResult]:
        """Search the corpus.

        Args:
            query: Search query string.
            options: Result limit and content length; defaults apply to missing
                or non-positive values.

        Returns:
            List of SearchResult instances ordered by relevance, content truncated.
        """
        limit = options.limit if options and options.limit > 0 else DEFAULT_LIMIT
        max_length = (
            options.max_content_length if options and options.max_content_length > 0 else DEFAULT_MAX_CONTENT_LENGTH
        )

        hits = self.index_manager.search(query, limit)
        return [_to_result(doc, score, truncate_content(doc.content, max_length)) for doc, score in hits]

    def get_document(self, doc_id: str) -> SearchResult | None:
        """Retrieve a document by id with its full content.

        Args:
            doc_id: Document identifier.

        Returns:
            SearchResult with score 0, or None if no document has that id.
        """
        doc = self.index_manager.get_by_id(doc_id)
        if doc is None:
            return None
        return _to_result(doc, 0.0, doc.content)

    def close(self) -> None:
        """Release the index."""
        self.index_manager.close()


def _to_result(doc: IndexDocument, score: float, content: str) -> SearchResult:
    return SearchResult(
        id=doc.id,
        title=doc.title,
        content=content,
        description=doc.description,
        url=doc.url,
        category=doc.category,
        score=score,
    )


class LazySearcher:
    """Builds a searcher and its index on first use, exactly once.

    Concurrent first callers wait on a lock while one of them initialises.
    A failed initialisation is not remembered, so the next call starts over.
    """

    def __init__(self, factory: Callable[[], Searcher]) -> None:
        """Initialise lazy searcher.

        Args:
            factory: Creates the searcher on the first call to :meth:`get`.
        """
        self._factory = factory
        self._lock = threading.Lock()
        self._searcher: Searcher | None = None

    def get(self) -> Searcher:
        """Return the initialised searcher, creating it if necessary.

        Raises:
            DocumentationError: If creating the searcher or its index fails.
        """
        with self._lock:
            if self._searcher is not None:
                return self._searcher

            searcher = self._factory()
            try:
                searcher.ensure_index()
            except Exception:
                searcher.close()
                raise
            self._searcher = searcher
            return searcher

    def close(self) -> None:
        """Close the searcher if it was initialised; the next call to :meth:`get` starts over."""
        with self._lock:
            if self._searcher is not None:
                self._searcher.close()
                self._searcher = None


class SearcherRegistry:
    """One lazily initialised searcher per configured corpus."""

    def __init__(
        self,
        corpora: dict[str, CorpusConfig] | None = None,
        cache_dir: Path | None = None,
        fetcher: Fetcher | None = None,
    ) -> None:
        """Initialise registry.

        Args:
            corpora: Corpora by name; defaults to all known corpora.
            cache_dir: Cache root shared by the searchers.
            fetcher: Fetcher shared by the searchers.
        """
        self.corpora = corpora if corpora is not None else dict(CORPORA)
        self._searchers = {
            name: LazySearcher(self._factory_for(corpus, cache_dir, fetcher)) for name, corpus in self.corpora.items()
        }

    @staticmethod
    def _factory_for(corpus: CorpusConfig, cache_dir: Path | None, fetcher: Fetcher | None) -> Callable[[], Searcher]:
        def factory() -> Searcher:
            return Searcher(corpus, cache_dir=cache_dir, fetcher=fetcher)

        return factory

    def get(self, name: str) -> Searcher:
        """Return the ready searcher of a corpus.

        Raises:
            KeyError: If no corpus has that name.
        """
        if name not in self._searchers:
            msg = f"Unknown corpus {name!r}; expected one of {', '.join(self._searchers)}"
            raise KeyError(msg)
        return self._searchers[name].get()

    def close(self) -> None:
        """Close every searcher that has been initialised."""
        for searcher in self._searchers.values():
            searcher.close()
