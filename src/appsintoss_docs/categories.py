"""Category paths derived from the outline document or from URLs."""

from collections.abc import Callable

from appsintoss_docs.models import OutlineDocument, Section

CATEGORY_SEPARATOR = " > "

URLTransform = Callable[[str], str]


def build_category_map(outline: OutlineDocument, url_transform: URLTransform | None = None) -> dict[str, str]:
    """Map every link URL of an outline to the category path of its section.

    The category path of a section joins the titles of its ancestors and its
    own title with ``" > "``. Only links directly under a section are
    recorded for it.

    Args:
        outline: Parsed outline document.
        url_transform: Optional rewrite applied to each link URL before it is
            used as a key, e.g. to make relative URLs absolute.

    Returns:
        Mapping of URL to category path.
    """
    category_map: dict[str, str] = {}
    _collect(outline.sections, "", url_transform, category_map)
    return category_map


def _collect(
    sections: list[Section],
    parent: str,
    url_transform: URLTransform | None,
    category_map: dict[str, str],
) -> None:
    for section in sections:
        category = f"{parent}{CATEGORY_SEPARATOR}{section.title}" if parent else section.title
        for link in section.links:
            url = url_transform(link.url) if url_transform else link.url
            category_map[url] = category
        _collect(section.children, category, url_transform, category_map)


def format_path_segment(segment: str) -> str:
    """Title-case a kebab-case path segment (``tds-react-native`` -> ``Tds React Native``).

    Only an ASCII lowercase first letter is upper-cased; other words are kept as they are.
    """
    words = segment.split("-")
    return " ".join(word[:1].upper() + word[1:] if "a" <= word[:1] <= "z" else word for word in words)


def path_category(url: str, base_url: str, sentinel: str = "TDS") -> str:
    """Derive a category path from the first two path segments of a URL.

    Args:
        url: Absolute document URL.
        base_url: Origin stripped from the URL before splitting.
        sentinel: Category returned when the URL has no path.

    Returns:
        Category path such as ``"Tds React Native > Components"``.
    """
    path = url.removeprefix(base_url)
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return sentinel
    return CATEGORY_SEPARATOR.join(format_path_segment(segment) for segment in segments[:2])
