"""
Retrieval error taxonomy.

Network failures are transient and retried; status and format errors
are not. Every error carries the URL and, where known, the status code.
"""

from __future__ import annotations


class RetrievalError(Exception):
    """Base exception for retrieval errors."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class NetworkError(RetrievalError):
    """Transient transport failure: DNS, timeout, reset or refused connection."""

    DNS = "dns"
    TIMEOUT = "timeout"
    CONNECTION = "connection"
    FETCH_FAILED = "fetch_failed"

    def __init__(
        self,
        message: str,
        url: str | None = None,
        kind: str = FETCH_FAILED,
        cause: Exception | None = None,
    ):
        super().__init__(message, url=url, cause=cause)
        self.kind = kind


class HttpStatusError(RetrievalError):
    """Upstream answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        reason: str = "",
    ):
        super().__init__(message, url=url, status_code=status_code)
        self.reason = reason


class BlockedError(HttpStatusError):
    """Request refused as forbidden or blocked (403 and similar)."""
    pass


class ResponseFormatError(RetrievalError):
    """Response body did not have the expected shape."""
    pass
