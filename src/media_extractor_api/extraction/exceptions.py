"""Error taxonomy for extraction calls.

Two families live here:

- ``ExtractionError`` and its subclasses describe problems with the data a
  platform returned (or with what the caller asked for). Optional field
  failures are recovered and reported as data on the result; the others
  terminate the call.
- ``NetworkError`` and its subclasses describe transport failures. They are
  never captured by the field aggregator and never retried.
"""
from __future__ import annotations

from typing import Optional


class ExtractionError(Exception):
    """Base class for extraction failures."""


class ParsingError(ExtractionError):
    """Raised when a platform response cannot be interpreted."""


class FieldExtractionError(ParsingError):
    """An optional field could not be extracted; the cause is chained."""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Could not extract field '{field}'")


class CriticalExtractionError(ExtractionError):
    """A required identity field is unavailable; the whole call fails."""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Could not extract required field '{field}'")


class ContentNotAvailableError(ExtractionError):
    """The platform reports that the requested content does not exist."""


class InvalidCursorError(ExtractionError):
    """A pagination cursor is malformed or was not produced by this extractor."""


class NoMatchingServiceError(ExtractionError):
    """No registered service recognises the URL."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"No service can handle URL: {url}")


class NetworkError(RuntimeError):
    """Raised when the transport fails to complete a request."""


class HttpStatusError(NetworkError):
    """Raised when a response carries a non-success status code."""

    def __init__(self, status_code: int, url: str):
        self.status_code = status_code
        self.url = url
        super().__init__(f"HTTP {status_code} for {url}")


class ExtractionCancelled(NetworkError):
    """Raised when a call is cancelled or its deadline passes."""
