"""Parser for outline (llms.txt) markdown documents."""

import logging
from dataclasses import dataclass, field

from markdown_it import MarkdownIt
from markdown_it.token import Token

from appsintoss_docs.exceptions import ParseError
from appsintoss_docs.models import Link, OutlineDocument, Section

logger = logging.getLogger(__name__)


@dataclass
class _SectionNode:
    title: str
    level: int
    links: list[Link] = field(default_factory=list)
    children: list[int] = field(default_factory=list)


class _SectionArena:
    """Builds the section tree from headings in document order.

    Nodes live in a flat list and refer to their children by index; the stack
    of open sections holds indexes as well, so growing the list never
    invalidates anything held by the stack.
    """

    def __init__(self) -> None:
        self.nodes: list[_SectionNode] = []
        self.roots: list[int] = []
        self.stack: list[int] = []

    def open_section(self, title: str, level: int) -> None:
        """Start a section, closing any open sections at the same or a deeper level."""
        while self.stack and self.nodes[self.stack[-1]].level >= level:
            self.stack.pop()

        handle = len(self.nodes)
        self.nodes.append(_SectionNode(title=title, level=level))
        if self.stack:
            self.nodes[self.stack[-1]].children.append(handle)
        else:
            self.roots.append(handle)
        self.stack.append(handle)

    def add_link(self, link: Link) -> bool:
        """Attach a link to the innermost open section.

        Returns:
            False if no section is open and the link was dropped.
        """
        if not self.stack:
            return False
        self.nodes[self.stack[-1]].links.append(link)
        return True

    def build(self) -> list[Section]:
        """Materialise the top-level sections with their subtrees."""
        return [self._materialise(handle) for handle in self.roots]

    def _materialise(self, handle: int) -> Section:
        node = self.nodes[handle]
        return Section(
            title=node.title,
            level=node.level,
            links=list(node.links),
            children=[self._materialise(child) for child in node.children],
        )


def _keep_destination(url: str) -> str:
    return url


class OutlineParser:
    """Parses outline markdown into a title, a summary and a section tree."""

    def __init__(self) -> None:
        """Initialise the CommonMark parser.

        Link destinations are kept verbatim instead of being percent-encoded,
        so that outline URLs compare equal to the URLs of the flat-content
        export (which may contain non-ASCII path segments).
        """
        self._md = MarkdownIt("commonmark")
        self._md.normalizeLink = _keep_destination  # type: ignore[method-assign]

    def parse(self, content: str) -> OutlineDocument:
        """Parse an outline document.

        Args:
            content: Raw markdown text.

        Returns:
            OutlineDocument with title, summary and root sections.

        Raises:
            ParseError: If the content is not text or its block structure is unbalanced.
        """
        if not isinstance(content, str):
            msg = f"Outline content must be text, got {type(content).__name__}"
            raise ParseError(msg)

        tokens = self._md.parse(content)
        result = OutlineDocument()
        arena = _SectionArena()

        index = 0
        while index < len(tokens):
            token = tokens[index]

            if token.type == "heading_open":
                end = _closing_index(tokens, index)
                title = " ".join(_inline_text(tok) for tok in tokens[index + 1 : end] if tok.type == "inline").strip()
                level = int(token.tag[1:])
                if level == 1:
                    result.title = title
                else:
                    arena.open_section(title, level)
                index = end + 1
                continue

            if token.type == "blockquote_open":
                end = _closing_index(tokens, index)
                if not result.summary:
                    inline = [_inline_text(tok) for tok in tokens[index + 1 : end] if tok.type == "inline"]
                    result.summary = " ".join(part for part in inline if part).strip()

            elif token.type == "list_item_open":
                end = _closing_index(tokens, index)
                link = _extract_link(tokens[index + 1 : end], token.level)
                if link is not None and not arena.add_link(link):
                    logger.debug("Skipping link outside of any section: %s", link.url)
                index = end + 1
                continue

            index += 1

        result.sections = arena.build()
        return result


def _closing_index(tokens: list[Token], start: int) -> int:
    opening = tokens[start]
    closing_type = opening.type.removesuffix("_open") + "_close"
    for index in range(start + 1, len(tokens)):
        candidate = tokens[index]
        if candidate.type == closing_type and candidate.level == opening.level:
            return index
    msg = f"Unbalanced markdown structure: {opening.type} on line {_line_of(opening)} is never closed"
    raise ParseError(msg)


def _line_of(token: Token) -> int:
    return token.map[0] + 1 if token.map else 0


def _inline_text(token: Token) -> str:
    """Plain text of an inline token: text and code spans, breaks as spaces."""
    parts: list[str] = []
    for child in token.children or []:
        if child.type in ("text", "code_inline"):
            parts.append(child.content)
        elif child.type in ("softbreak", "hardbreak"):
            parts.append(" ")
    return "".join(parts).strip()


def _extract_link(item_tokens: list[Token], item_level: int) -> Link | None:
    """Interpret a list item as a link entry.

    Only the first paragraph directly inside the item is considered; it must
    start with a hyperlink. Any text following the link, minus a leading
    colon separator, becomes the description.
    """
    paragraph = next(
        (tok for tok in item_tokens if tok.type == "inline" and tok.level == item_level + 2),
        None,
    )
    if paragraph is None or not paragraph.children:
        return None

    children = list(paragraph.children)
    while children and children[0].type == "text" and not children[0].content.strip():
        children.pop(0)
    if not children or children[0].type != "link_open":
        return None

    url = str(children[0].attrGet("href") or "")
    title_parts: list[str] = []
    description_parts: list[str] = []
    depth = 0
    in_title = True
    for child in children:
        if in_title:
            if child.type == "link_open":
                depth += 1
            elif child.type == "link_close":
                depth -= 1
                if depth == 0:
                    in_title = False
            elif child.type in ("text", "code_inline"):
                title_parts.append(child.content)
            continue

        if child.type in ("text", "code_inline"):
            description_parts.append(child.content)
        elif child.type in ("softbreak", "hardbreak"):
            description_parts.append(" ")

    return Link(
        title="".join(title_parts).strip(),
        url=url,
        description="".join(description_parts).lstrip(": ").strip(),
    )
