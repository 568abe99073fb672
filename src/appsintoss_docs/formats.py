"""Format variants of the documentation corpora.

Each corpus publishes its flat-content export in one of two shapes. A format
variant bundles the matching parser with the way that corpus assigns
categories, so the indexer can turn raw export text into index documents
without knowing which corpus it is working on.
"""

from abc import ABC, abstractmethod

from appsintoss_docs.categories import path_category
from appsintoss_docs.docid import generate_doc_id
from appsintoss_docs.models import FlatDocument, IndexDocument
from appsintoss_docs.parser import FrontmatterParser, InlinePathParser

DEFAULT_SENTINEL_CATEGORY = "TDS"


class CorpusFormat(ABC):
    """Parse-and-categorize strategy shared by both format variants."""

    name: str

    @abstractmethod
    def parse(self, content: str) -> list[FlatDocument]:
        """Split a flat-content export into documents."""

    def transform_url(self, url: str) -> str:
        """Rewrite an outline link URL into the form used by the export."""
        return url

    def categorize(self, url: str, category_map: dict[str, str]) -> str:
        """Return the category path of a document URL."""
        return category_map.get(url, "")

    def build_documents(self, content: str, category_map: dict[str, str] | None = None) -> list[IndexDocument]:
        """Parse an export and turn it into index documents.

        Args:
            content: Raw flat-content export.
            category_map: URL to category mapping built from the outline document.

        Returns:
            Index documents with categories and identifiers assigned, in export order.
        """
        category_map = category_map or {}
        documents = []
        for doc in self.parse(content):
            category = self.categorize(doc.url, category_map)
            documents.append(
                IndexDocument(
                    id=generate_doc_id(doc.title, doc.url, category),
                    title=doc.title,
                    content=doc.content,
                    url=doc.url,
                    category=category,
                )
            )
        return documents


class FrontmatterFormat(CorpusFormat):
    """Primary documentation: YAML frontmatter blocks, categories from the outline only."""

    name = "frontmatter"

    def __init__(self) -> None:
        self.parser = FrontmatterParser()

    def parse(self, content: str) -> list[FlatDocument]:
        return self.parser.parse(content)


class InlinePathFormat(CorpusFormat):
    """Component library: ``# Title (/path/)`` blocks with URL-derived fallback categories."""

    name = "inline-path"

    def __init__(self, base_url: str, sentinel: str = DEFAULT_SENTINEL_CATEGORY) -> None:
        """Initialise format.

        Args:
            base_url: Origin of the corpus; relative paths are resolved against it.
            sentinel: Category used when a URL has no path to derive one from.
        """
        self.parser = InlinePathParser(base_url)
        self.base_url = self.parser.base_url
        self.sentinel = sentinel

    def parse(self, content: str) -> list[FlatDocument]:
        return self.parser.parse(content)

    def transform_url(self, url: str) -> str:
        return self.parser.resolve_url(url)

    def categorize(self, url: str, category_map: dict[str, str]) -> str:
        category = category_map.get(url, "")
        if category:
            return category
        return path_category(url, self.base_url, self.sentinel)


FORMAT_NAMES = (FrontmatterFormat.name, InlinePathFormat.name)


def get_format(name: str, base_url: str = "") -> CorpusFormat:
    """Return the format variant registered under ``name``.

    Args:
        name: ``"frontmatter"`` or ``"inline-path"``.
        base_url: Corpus origin, required by the inline-path variant.

    Returns:
        A new CorpusFormat instance.

    Raises:
        ValueError: If the name is unknown.
    """
    if name == FrontmatterFormat.name:
        return FrontmatterFormat()
    if name == InlinePathFormat.name:
        return InlinePathFormat(base_url)
    msg = f"Unknown corpus format {name!r}; expected one of {', '.join(FORMAT_NAMES)}"
    raise ValueError(msg)
