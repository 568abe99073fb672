"""Data models for the Apps in Toss documentation index."""

from dataclasses import dataclass, field


@dataclass
class Link:
    """A link entry inside an outline section."""

    title: str
    url: str
    description: str = ""


@dataclass
class Section:
    """A heading of the outline document with its links and subsections."""

    title: str
    level: int
    links: list[Link] = field(default_factory=list)
    children: list["Section"] = field(default_factory=list)

    def all_links(self) -> list[Link]:
        """Return the links of this section followed by those of its descendants."""
        links = list(self.links)
        for child in self.children:
            links.extend(child.all_links())
        return links

    def find(self, lower_title: str) -> "Section | None":
        """Return the first section in this subtree whose title matches, case-insensitively.

        Args:
            lower_title: Title to look for, already lowercased.

        Returns:
            The matching section in depth-first order, or None.
        """
        if self.title.lower() == lower_title:
            return self
        for child in self.children:
            found = child.find(lower_title)
            if found is not None:
                return found
        return None

    def titles(self) -> list[str]:
        """Return the titles of this section and its descendants, depth-first."""
        titles = [self.title]
        for child in self.children:
            titles.extend(child.titles())
        return titles


@dataclass
class OutlineDocument:
    """Parsed structure of an outline (llms.txt) document."""

    title: str = ""
    summary: str = ""
    sections: list[Section] = field(default_factory=list)

    def all_links(self) -> list[Link]:
        """Return every link of the outline as a flat, depth-first list.

        Returns:
            Links in document order.
        """
        links: list[Link] = []
        for section in self.sections:
            links.extend(section.all_links())
        return links

    def find_section(self, title: str) -> Section | None:
        """Find a section by title, ignoring case.

        Args:
            title: Section title to look for.

        Returns:
            The first matching section in depth-first order, or None.
        """
        lower_title = title.lower()
        for section in self.sections:
            found = section.find(lower_title)
            if found is not None:
                return found
        return None

    def section_titles(self) -> list[str]:
        """Return all section titles in pre-order."""
        titles: list[str] = []
        for section in self.sections:
            titles.extend(section.titles())
        return titles


@dataclass
class FlatDocument:
    """One document extracted from a flat-content (llms-full.txt) export."""

    url: str
    title: str
    content: str


@dataclass
class IndexDocument:
    """A document as stored in the search index."""

    id: str
    title: str
    content: str = ""
    description: str = ""
    url: str = ""
    category: str = ""


@dataclass
class SearchResult:
    """Represents a search result."""

    id: str
    title: str
    content: str
    description: str
    url: str
    category: str
    score: float


@dataclass
class SearchOptions:
    """Options accepted by a search call."""

    limit: int = 10
    max_content_length: int = 500


@dataclass
class CacheMetadata:
    """Revalidation state persisted next to a corpus index."""

    etag: str
    last_fetched: str
    url: str


@dataclass
class OutlineEntry:
    """A link of the outline corpus flattened for listing."""

    id: str
    title: str
    content: str
    url: str
    category: str
