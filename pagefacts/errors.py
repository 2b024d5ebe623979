"""Exceptions raised across the pagefacts API.

Every failure that ends an extraction request is an :class:`ExtractionError`.
Per-field problems (one bad link, one unparseable color) never surface here;
the extractors skip those candidates and carry on.
"""

from __future__ import annotations


class ExtractionError(RuntimeError):
    """Raised when a document cannot be extracted.

    Attributes:
        url    -- the URL involved in the failure (may be empty)
        status -- HTTP status code (0 if not applicable)
    """

    def __init__(self, message: str, url: str = "", status: int = 0) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class InvalidUrl(ExtractionError):
    """The input does not parse as a URL."""


class ForbiddenTarget(InvalidUrl):
    """The URL points at loopback, link-local, private or bare-IP hosts."""


class UnsupportedScheme(InvalidUrl):
    """The URL scheme is not http or https."""


class FetchError(ExtractionError):
    """Raised when a URL cannot be fetched.

    Attributes:
        url    -- the URL that failed
        status -- HTTP status code (0 if no response was received)
        body   -- decoded response body, when one was received
    """

    def __init__(
        self,
        message: str,
        url: str = "",
        status: int = 0,
        body: str | None = None,
    ) -> None:
        super().__init__(message, url=url, status=status)
        self.body = body


class EmptyResponse(ExtractionError):
    """The fetch layer (or the caller) supplied no document body."""


class InvalidSelector(ExtractionError):
    """An include/exclude selector could not be compiled."""

    def __init__(self, message: str, selector: str = "", url: str = "") -> None:
        super().__init__(message, url=url)
        self.selector = selector
