"""Exceptions raised by the gamepass pipeline.

Only two of them end a request with a non-200 status:
`InvalidIdentifierError` (400) and `UpstreamListingError` (500). Fan-out and
name-resolution failures are caught inside the pipeline and only show up in
the summary counters and the log.
"""

from __future__ import annotations


class GamepassApiError(Exception):
    """Base class for errors raised by this package."""


class InvalidIdentifierError(GamepassApiError):
    """A required identifier is missing or not a positive integer."""

    def __init__(self, field: str, value: object = None) -> None:
        self.field = field
        self.value = value
        if value is None or value == "":
            message = f"{field} is required"
        else:
            message = f"{field} must be a positive integer"
        super().__init__(message)


class UpstreamError(GamepassApiError):
    """An upstream call failed: network error, non-2xx status or bad body."""

    def __init__(self, message: str, *, url: str = "", status_code: int | None = None) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def wrap(cls, error: UpstreamError) -> UpstreamError:
        """Re-raise `error` as this more specific subclass, keeping its details."""
        return cls(str(error), url=error.url, status_code=error.status_code)


class UpstreamListingError(UpstreamError):
    """The primary experience listing could not be fetched."""


class UpstreamFanoutError(UpstreamError):
    """The gamepass lookup for one experience failed."""


class UpstreamNameResolutionError(UpstreamError):
    """The best-effort batch name lookup failed."""
