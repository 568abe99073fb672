"""HTTP retrieval of remote documentation files."""

import logging
from dataclasses import dataclass

import requests

from appsintoss_docs.config import FETCH_TIMEOUT, HEAD_TIMEOUT
from appsintoss_docs.exceptions import FetchError

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    """Body and revalidation token of a fetched document."""

    content: str
    etag: str


class Fetcher:
    """Performs GET and conditional HEAD requests against documentation URLs."""

    def __init__(self, session: requests.Session | None = None) -> None:
        """Initialise fetcher.

        Args:
            session: Optional session to reuse; a new one is created otherwise.
        """
        self.session = session or requests.Session()

    def fetch(self, url: str, timeout: float = FETCH_TIMEOUT) -> FetchResult:
        """Fetch a document body together with its ETag.

        Args:
            url: Document URL.
            timeout: Request timeout in seconds.

        Returns:
            FetchResult with the decoded body and the ETag header (empty if absent).

        Raises:
            FetchError: On transport failure or a non-200 response.
        """
        logger.debug("GET %s", url)
        try:
            response = self.session.get(url, timeout=timeout)
        except requests.RequestException as exc:
            raise FetchError(url, cause=exc) from exc

        if response.status_code != requests.codes.ok:
            raise FetchError(url, status_code=response.status_code)

        # llms.txt files are served as text/plain without a charset
        if "charset" not in response.headers.get("Content-Type", ""):
            response.encoding = "utf-8"
        return FetchResult(content=response.text, etag=response.headers.get("ETag", ""))

    def fetch_text(self, url: str, timeout: float = FETCH_TIMEOUT) -> str:
        """Fetch a document body, discarding the ETag."""
        return self.fetch(url, timeout).content

    def check_etag(self, url: str, cached_etag: str, timeout: float = HEAD_TIMEOUT) -> tuple[str, bool]:
        """Revalidate a cached ETag with a conditional HEAD request.

        Args:
            url: Document URL.
            cached_etag: ETag stored from the last fetch; when empty no
                ``If-None-Match`` header is sent and the result is always "changed".
            timeout: Request timeout in seconds.

        Returns:
            Tuple of (current ETag, changed flag).

        Raises:
            FetchError: On transport failure or an unexpected status.
        """
        headers = {"If-None-Match": cached_etag} if cached_etag else {}
        logger.debug("HEAD %s (If-None-Match: %s)", url, cached_etag or "-")
        try:
            response = self.session.head(url, headers=headers, timeout=timeout, allow_redirects=True)
        except requests.RequestException as exc:
            raise FetchError(url, cause=exc) from exc

        if response.status_code == requests.codes.not_modified:
            return cached_etag, False
        if not 200 <= response.status_code < 300:
            raise FetchError(url, status_code=response.status_code)
        return response.headers.get("ETag", ""), True
