"""Exceptions raised by the handoff snapshot."""


class HandoffSnapshotError(Exception):
    """Base class for all snapshot failures."""


class ConfigurationError(HandoffSnapshotError):
    """Required configuration or credentials are missing or invalid."""


class UpstreamError(HandoffSnapshotError):
    """The ticketing API returned a non-success or malformed response."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(UpstreamError):
    """The ticketing API asked us to slow down (HTTP 429).

    Attributes:
        retry_after: Server-provided delay hint in seconds, if any.
    """

    def __init__(self, message: str, *, retry_after: float | None = None):
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class ScanAbortedError(HandoffSnapshotError):
    """A page could not be fetched within the retry limit."""


class PublishError(HandoffSnapshotError):
    """The report sink rejected the message."""
