"""Exceptions raised by the documentation search pipeline."""


class DocumentationError(Exception):
    """Base class for all errors raised by this package."""


class FetchError(DocumentationError):
    """Raised when a remote document cannot be retrieved."""

    def __init__(self, url: str, status_code: int | None = None, cause: BaseException | None = None) -> None:
        """Initialise fetch error.

        Args:
            url: URL that was requested.
            status_code: HTTP status returned by the server, if any.
            cause: Underlying transport error, if any.
        """
        self.url = url
        self.status_code = status_code
        self.cause = cause
        if cause is not None:
            message = f"fetch error: {url}: {cause}"
        else:
            message = f"fetch error: {url} (status {status_code})"
        super().__init__(message)


class ParseError(DocumentationError):
    """Raised when a document cannot be walked at all."""


class SearchIndexError(DocumentationError):
    """Raised when the search index cannot be created, opened, read or written."""


class DocumentNotFoundError(DocumentationError):
    """Raised when an outline document lookup has no match."""

    def __init__(self, doc_id: str) -> None:
        self.doc_id = doc_id
        super().__init__(f"document not found: {doc_id}")
