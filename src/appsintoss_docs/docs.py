"""Browsing of the outline documents (document list and examples)."""

import logging

from appsintoss_docs.categories import CATEGORY_SEPARATOR
from appsintoss_docs.config import EXAMPLES_URL, PRIMARY
from appsintoss_docs.docid import generate_doc_id
from appsintoss_docs.exceptions import DocumentNotFoundError
from appsintoss_docs.fetcher import Fetcher
from appsintoss_docs.models import OutlineEntry, Section
from appsintoss_docs.outline import OutlineParser

logger = logging.getLogger(__name__)


def flatten_sections(sections: list[Section], parent: str = "") -> list[OutlineEntry]:
    """Flatten an outline section tree into entries, depth first.

    Each link becomes one entry whose category is the ``" > "`` joined title
    path of its section and whose content is the link description.
    """
    entries = []
    for section in sections:
        category = f"{parent}{CATEGORY_SEPARATOR}{section.title}" if parent else section.title
        for link in section.links:
            entries.append(
                OutlineEntry(
                    id=generate_doc_id(link.title, link.url, category),
                    title=link.title,
                    content=link.description,
                    url=link.url,
                    category=category,
                )
            )
        entries.extend(flatten_sections(section.children, category))
    return entries


class OutlineDocs:
    """Lists outline entries and retrieves the raw documents they link to.

    Nothing is cached: every call fetches the outline again.
    """

    def __init__(
        self,
        fetcher: Fetcher | None = None,
        outline_url: str = PRIMARY.outline_url,
        examples_url: str = EXAMPLES_URL,
    ) -> None:
        """Initialise outline access.

        Args:
            fetcher: Fetcher used for outlines and documents.
            outline_url: URL of the documentation outline.
            examples_url: URL of the examples outline.
        """
        self.fetcher = fetcher or Fetcher()
        self.outline_url = outline_url
        self.examples_url = examples_url
        self.parser = OutlineParser()

    def _entries(self, url: str) -> list[OutlineEntry]:
        outline = self.parser.parse(self.fetcher.fetch_text(url))
        return flatten_sections(outline.sections)

    def _fetch_entry(self, url: str, doc_id: str) -> str:
        for entry in self._entries(url):
            if entry.id == doc_id:
                logger.debug("Fetching %s for %s", entry.url, doc_id)
                return self.fetcher.fetch_text(entry.url)
        raise DocumentNotFoundError(doc_id)

    def list_documents(self) -> list[OutlineEntry]:
        """Return every link of the primary outline document.

        Raises:
            FetchError: If the outline cannot be fetched.
            ParseError: If the outline cannot be parsed.
        """
        return self._entries(self.outline_url)

    def get_document(self, doc_id: str) -> str:
        """Return the raw markdown of a primary outline entry.

        Args:
            doc_id: Identifier from :meth:`list_documents`.

        Raises:
            DocumentNotFoundError: If no entry has that identifier.
            FetchError: If the outline or the document cannot be fetched.
        """
        return self._fetch_entry(self.outline_url, doc_id)

    def list_examples(self) -> list[OutlineEntry]:
        """Return every link of the examples outline document."""
        return self._entries(self.examples_url)

    def get_example(self, doc_id: str) -> str:
        """Return the raw markdown of an example; see :meth:`get_document`."""
        return self._fetch_entry(self.examples_url, doc_id)
