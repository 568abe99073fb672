"""Builds the search index of a corpus from its published llms.txt files."""

import logging

from appsintoss_docs.categories import build_category_map
from appsintoss_docs.config import CorpusConfig
from appsintoss_docs.database import IndexManager
from appsintoss_docs.exceptions import FetchError, ParseError
from appsintoss_docs.fetcher import Fetcher
from appsintoss_docs.formats import CorpusFormat, get_format
from appsintoss_docs.outline import OutlineParser

logger = logging.getLogger(__name__)


class DocsIndexer:
    """Indexes one corpus from its flat-content export and outline document."""

    def __init__(
        self,
        corpus: CorpusConfig,
        index_manager: IndexManager,
        fetcher: Fetcher,
        corpus_format: CorpusFormat | None = None,
    ) -> None:
        """Initialise indexer.

        Args:
            corpus: Corpus endpoints and format name.
            index_manager: Index the documents are written to.
            fetcher: Fetcher for the remote documents.
            corpus_format: Format variant; looked up from ``corpus.format`` when omitted.
        """
        self.corpus = corpus
        self.index_manager = index_manager
        self.fetcher = fetcher
        self.format = corpus_format or get_format(corpus.format, corpus.base_url)
        self.outline_parser = OutlineParser()

    def build(self) -> str:
        """Fetch, parse and index the corpus into a fresh index.

        The outline document only contributes categories; failing to fetch or
        parse it leaves every document with its fallback category instead of
        aborting the build.

        Returns:
            ETag of the flat-content export (empty if the server sent none).

        Raises:
            FetchError: If the flat-content export cannot be fetched.
            SearchIndexError: If the index cannot be created or written.
        """
        logger.info("Fetching %s", self.corpus.flat_url)
        result = self.fetcher.fetch(self.corpus.flat_url)

        category_map = self.fetch_category_map()

        self.index_manager.create_index()
        count = self.index_content(result.content, category_map)
        logger.info("Indexed %d documents from %s", count, self.corpus.flat_url)
        return result.etag

    def fetch_category_map(self) -> dict[str, str]:
        """Build the URL to category mapping from the outline document.

        Returns:
            Mapping of URL to category path; empty if the outline is unavailable.
        """
        try:
            content = self.fetcher.fetch_text(self.corpus.outline_url)
            outline = self.outline_parser.parse(content)
        except (FetchError, ParseError) as exc:
            logger.warning("Building index without categories: %s", exc)
            return {}
        return build_category_map(outline, self.format.transform_url)

    def index_content(self, content: str, category_map: dict[str, str] | None = None) -> int:
        """Parse an export and write its documents to the open index.

        Args:
            content: Raw flat-content export.
            category_map: URL to category mapping.

        Returns:
            Number of documents indexed.
        """
        documents = self.format.build_documents(content, category_map)
        if not documents:
            logger.warning("No documents found in %s", self.corpus.flat_url)
        return self.index_manager.index_documents(documents)
