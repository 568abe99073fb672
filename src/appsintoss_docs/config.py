"""Corpus definitions and runtime defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

CACHE_DIR_ENV = "AX_CACHE_DIR"
CACHE_SUBDIR = "ax"

FETCH_TIMEOUT = 30.0
HEAD_TIMEOUT = 10.0

DEFAULT_LIMIT = 10
DEFAULT_MAX_CONTENT_LENGTH = 500

APPS_IN_TOSS_BASE_URL = "https://developers-apps-in-toss.toss.im"
TDS_BASE_URL = "https://tossmini-docs.toss.im"

EXAMPLES_URL = f"{APPS_IN_TOSS_BASE_URL}/tutorials/examples.md"


@dataclass(frozen=True, slots=True)
class CorpusConfig:
    """Remote endpoints and on-disk names of one corpus instance."""

    name: str
    flat_url: str
    outline_url: str
    format: str
    metadata_filename: str
    index_subdir: str
    base_url: str = ""


PRIMARY = CorpusConfig(
    name="docs",
    flat_url=f"{APPS_IN_TOSS_BASE_URL}/llms-full.txt",
    outline_url=f"{APPS_IN_TOSS_BASE_URL}/llms.txt",
    format="frontmatter",
    metadata_filename="cache-metadata.json",
    index_subdir="search-index",
    base_url=APPS_IN_TOSS_BASE_URL,
)

TDS_REACT_NATIVE = CorpusConfig(
    name="tds-rn",
    flat_url=f"{TDS_BASE_URL}/tds-react-native/llms-full.txt",
    outline_url=f"{TDS_BASE_URL}/tds-react-native/llms.txt",
    format="inline-path",
    metadata_filename="tds-cache-metadata.json",
    index_subdir="tds-search-index",
    base_url=TDS_BASE_URL,
)

TDS_MOBILE = CorpusConfig(
    name="tds-web",
    flat_url=f"{TDS_BASE_URL}/tds-mobile/llms-full.txt",
    outline_url=f"{TDS_BASE_URL}/tds-mobile/llms.txt",
    format="inline-path",
    metadata_filename="tds-mobile-cache-metadata.json",
    index_subdir="tds-mobile-search-index",
    base_url=TDS_BASE_URL,
)

CORPORA: dict[str, CorpusConfig] = {corpus.name: corpus for corpus in (PRIMARY, TDS_REACT_NATIVE, TDS_MOBILE)}


def default_cache_dir() -> Path:
    """Return the process-wide cache root.

    ``$AX_CACHE_DIR`` wins when set; otherwise the platform user cache
    directory (``$XDG_CACHE_HOME`` or ``~/.cache``) with an ``ax`` subdirectory.
    """
    override = os.environ.get(CACHE_DIR_ENV)
    if override:
        return Path(override)
    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    base = Path(xdg_cache) if xdg_cache else Path.home() / ".cache"
    return base / CACHE_SUBDIR
