"""Exception types raised by the collector pipelines."""


class CollectorError(Exception):
    """Base class for collector errors."""


class PlatformError(CollectorError):
    """Test-management platform returned an unexpected response."""

    def __init__(self, message: str, status: int | None = None, body: str = "") -> None:
        """Initialize with HTTP status and response body."""
        super().__init__(message)
        self.status = status
        self.body = body

    @property
    def is_server_error(self) -> bool:
        """Whether the platform answered with a 5xx status."""
        return self.status is not None and self.status >= 500


class IssueTrackerError(CollectorError):
    """Issue tracker search failed."""

    def __init__(self, message: str, status: int | None = None, body: str = "") -> None:
        """Initialize with HTTP status and response body."""
        super().__init__(message)
        self.status = status
        self.body = body


class QueueNotFoundError(CollectorError):
    """Configured queue has no matching definition on the platform."""


class ScreenshotDownloadError(CollectorError):
    """Screenshot could not be downloaded."""
