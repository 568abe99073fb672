"""On-disk cache state of one corpus instance."""

import json
import logging
import shutil
from dataclasses import asdict
from datetime import UTC, datetime
from pathlib import Path

from appsintoss_docs.fetcher import Fetcher
from appsintoss_docs.models import CacheMetadata

logger = logging.getLogger(__name__)

DEFAULT_METADATA_FILENAME = "cache-metadata.json"
DEFAULT_INDEX_SUBDIR = "search-index"


class CacheManager:
    """Tracks the revalidation token and index directory of a corpus."""

    def __init__(
        self,
        cache_dir: Path,
        metadata_filename: str = DEFAULT_METADATA_FILENAME,
        index_subdir: str = DEFAULT_INDEX_SUBDIR,
        fetcher: Fetcher | None = None,
    ) -> None:
        """Initialise cache manager, creating the cache directory if needed.

        Args:
            cache_dir: Process-wide cache root.
            metadata_filename: Name of this corpus' metadata file.
            index_subdir: Name of this corpus' index directory.
            fetcher: Fetcher used for revalidation requests.
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.metadata_path = self.cache_dir / metadata_filename
        self.index_path = self.cache_dir / index_subdir
        self.fetcher = fetcher or Fetcher()

    def load_metadata(self) -> CacheMetadata | None:
        """Read the persisted metadata.

        Returns:
            CacheMetadata, or None if the file is missing or unreadable.
        """
        try:
            data = json.loads(self.metadata_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable cache metadata %s: %s", self.metadata_path, exc)
            return None

        if not isinstance(data, dict):
            return None
        return CacheMetadata(
            etag=str(data.get("etag", "")),
            last_fetched=str(data.get("last_fetched", "")),
            url=str(data.get("url", "")),
        )

    def get_cached_etag(self) -> str:
        """Return the stored ETag, or an empty string when there is none."""
        metadata = self.load_metadata()
        return metadata.etag if metadata else ""

    def save_etag(self, url: str, etag: str) -> None:
        """Persist the ETag of a freshly indexed document.

        Args:
            url: URL the ETag belongs to.
            etag: ETag returned by the server.
        """
        metadata = CacheMetadata(
            etag=etag,
            last_fetched=datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
            url=url,
        )
        self.metadata_path.write_text(json.dumps(asdict(metadata), indent=2), encoding="utf-8")
        logger.debug("Saved ETag %s for %s", etag, url)

    def check_etag(self, url: str) -> tuple[str, bool]:
        """Ask the server whether the document changed since the stored ETag.

        Args:
            url: Document URL.

        Returns:
            Tuple of (current ETag, changed flag).

        Raises:
            FetchError: If the revalidation request fails.
        """
        return self.fetcher.check_etag(url, self.get_cached_etag())

    def index_exists(self) -> bool:
        """Return True if the index directory exists."""
        return self.index_path.is_dir()

    def delete_index(self) -> None:
        """Remove the index directory and everything in it."""
        if self.index_path.exists():
            shutil.rmtree(self.index_path)
            logger.debug("Deleted search index at %s", self.index_path)
