"""Parsers for flat-content (llms-full.txt) documentation exports."""

import logging
import re

import yaml

from appsintoss_docs.models import FlatDocument

logger = logging.getLogger(__name__)

_BLOCK_INDICATORS = (">-", ">", "|", "|-", ">+", "|+")


def _normalise_newlines(content: str) -> str:
    return content.replace("\r\n", "\n").replace("\r", "\n")


class FrontmatterParser:
    """Parses exports where each document starts with a YAML frontmatter block.

    Format::

        ---
        url: >-
          https://example.com/doc.md
        ---
        # Title

        Body...
    """

    DOCUMENT_START = re.compile(r"^---[ \t]*\n(?=url:)", re.MULTILINE)
    FENCE_LINE = re.compile(r"^---[ \t]*$", re.MULTILINE)

    def parse(self, content: str) -> list[FlatDocument]:
        """Split an export into documents.

        Args:
            content: Raw export text.

        Returns:
            Documents in input order; blocks without both a URL and a title are dropped.
        """
        content = _normalise_newlines(content)
        starts = [match.start() for match in self.DOCUMENT_START.finditer(content)]

        documents: list[FlatDocument] = []
        for position, start in enumerate(starts):
            end = starts[position + 1] if position + 1 < len(starts) else len(content)
            document = self._parse_block(content[start:end])
            if document is None:
                logger.debug("Dropping frontmatter block at offset %d", start)
                continue
            documents.append(document)
        return documents

    def _parse_block(self, block: str) -> FlatDocument | None:
        """Parse one ``---``-delimited block.

        Args:
            block: Block text starting at its opening fence.

        Returns:
            FlatDocument, or None if the block is incomplete.
        """
        parts = self.FENCE_LINE.split(block, maxsplit=2)
        if len(parts) < 3:
            return None

        url = self._extract_url(parts[1])
        title, body = self._extract_title_and_content(parts[2])
        if not url or not title:
            return None
        return FlatDocument(url=url, title=title, content=body)

    def _extract_url(self, frontmatter: str) -> str:
        """Read the ``url`` key of a frontmatter block.

        The block is loaded as YAML first; if it is not valid YAML the ``url:``
        line is scanned directly, accepting an inline value or a value on the
        next non-empty line after a block scalar indicator.

        Args:
            frontmatter: Text between the two fences.

        Returns:
            The URL, or an empty string if none was found.
        """
        try:
            data = yaml.safe_load(frontmatter)
        except yaml.YAMLError:
            data = None
        if isinstance(data, dict) and isinstance(data.get("url"), str):
            return str(data["url"]).strip()

        lines = frontmatter.split("\n")
        for index, line in enumerate(lines):
            stripped = line.strip()
            if not stripped.startswith("url:"):
                continue

            value = stripped.removeprefix("url:").strip()
            if value in _BLOCK_INDICATORS:
                following = (candidate.strip() for candidate in lines[index + 1 :])
                return next((candidate for candidate in following if candidate), "")
            return value.strip("\"'")
        return ""

    def _extract_title_and_content(self, body: str) -> tuple[str, str]:
        """Split a document body into its ``# `` title and the text after it.

        Args:
            body: Text after the closing fence.

        Returns:
            Tuple of (title, content); both empty if no title line exists.
        """
        lines = body.strip().split("\n")
        for index, line in enumerate(lines):
            stripped = line.strip()
            if stripped.startswith("# "):
                title = stripped.removeprefix("# ").strip()
                content = "\n".join(lines[index + 1 :]).strip()
                return title, content
        return "", ""


class InlinePathParser:
    """Parses exports where each document starts with ``# Title (/path/)``.

    Documents are separated by lines consisting of ``---``. Root-relative
    paths are resolved against ``base_url``.
    """

    SEPARATOR = re.compile(r"^---$", re.MULTILINE)
    HEADER = re.compile(r"^#\s+(?P<title>.*)\((?P<path>[^()]*)\)\s*$")

    def __init__(self, base_url: str) -> None:
        """Initialise parser.

        Args:
            base_url: Origin prepended to root-relative document paths.
        """
        self.base_url = base_url.rstrip("/")

    def parse(self, content: str) -> list[FlatDocument]:
        """Split an export into documents.

        Args:
            content: Raw export text, optionally starting with a byte-order mark.

        Returns:
            Documents in input order; blocks without a valid header are dropped.
        """
        content = _normalise_newlines(content.removeprefix("\ufeff"))

        documents: list[FlatDocument] = []
        for block in self.SEPARATOR.split(content):
            document = self._parse_block(block.strip())
            if document is None:
                if block.strip():
                    logger.debug("Dropping block without a '# Title (path)' header: %.60r", block.strip())
                continue
            documents.append(document)
        return documents

    def resolve_url(self, path: str) -> str:
        """Turn a document path into an absolute URL."""
        if path.startswith("/"):
            return self.base_url + path
        return path

    def _parse_block(self, block: str) -> FlatDocument | None:
        if not block:
            return None

        header, _, rest = block.partition("\n")
        match = self.HEADER.match(header.strip())
        if match is None:
            return None

        title = match.group("title").strip()
        url = self.resolve_url(match.group("path").strip())
        if not title or not url:
            return None
        return FlatDocument(url=url, title=title, content=rest.strip())
