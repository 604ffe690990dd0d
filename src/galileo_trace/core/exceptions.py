"""Custom exceptions for galileo-trace."""

from __future__ import annotations


class GalileoTraceError(Exception):
    """Base exception for all galileo-trace errors."""


class ConfigurationError(GalileoTraceError):
    """Required configuration (credential, project, log stream) is missing or invalid."""


class TransportError(GalileoTraceError):
    """A request to the remote API failed (network error or non-2xx status)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class RequestTimeoutError(TransportError):
    """A request to the remote API did not complete before its deadline."""


class FlushTimeoutError(RequestTimeoutError):
    """Flush did not complete in time; buffered traces were kept."""


class PayloadError(GalileoTraceError):
    """Buffered traces could not be encoded as a JSON request body."""
