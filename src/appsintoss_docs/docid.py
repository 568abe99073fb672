"""Deterministic document identifiers."""

import hashlib
import json

_HTML_SAFE_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def canonical_key(title: str, url: str = "", category: str = "") -> bytes:
    """Serialise the identifying fields of a document.

    Keys are always written in the order title, url, category, with empty
    url and category omitted. ``<``, ``>``, ``&`` and the Unicode line
    separators are written as ``\\u`` escapes so that identifiers match the
    ones published alongside the upstream documentation.

    Args:
        title: Document title.
        url: Document URL.
        category: Category path of the document.

    Returns:
        UTF-8 encoded canonical JSON.
    """
    key: dict[str, str] = {"title": title}
    if url:
        key["url"] = url
    if category:
        key["category"] = category

    encoded = json.dumps(key, ensure_ascii=False, separators=(",", ":"))
    for char, escape in _HTML_SAFE_ESCAPES.items():
        encoded = encoded.replace(char, escape)
    return encoded.encode("utf-8")


def generate_doc_id(title: str, url: str = "", category: str = "") -> str:
    """Return the 16 hex character identifier of a document.

    The identifier is the first 8 bytes of the SHA-256 digest of
    :func:`canonical_key`, so it stays the same across index rebuilds as long
    as title, url and category do not change.
    """
    digest = hashlib.sha256(canonical_key(title, url, category)).digest()
    return digest[:8].hex()
