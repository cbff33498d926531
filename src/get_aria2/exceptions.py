"""
Custom exceptions for get-aria2.

This module defines domain-specific exceptions for every stage of the
resolve-download-extract pipeline so callers can tell configuration mistakes
from network trouble and broken archives.
"""


class GetAria2Error(Exception):
    """
    Base exception for all get-aria2 errors.

    All custom exceptions in get-aria2 inherit from this class so a caller
    can catch every failure of the pipeline with a single clause.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(GetAria2Error):
    """
    Exception raised when the requested target is not supported.

    Raised before any network access takes place.
    """

    def __init__(
        self,
        message: str,
        platform: str | None = None,
        arch: str | None = None,
        details: str | None = None,
    ) -> None:
        """
        Initialize the configuration exception.

        Args:
            message: The primary error message.
            platform: The platform that was requested.
            arch: The architecture that was requested.
            details: Optional additional context.
        """
        super().__init__(message, details)
        self.platform = platform
        self.arch = arch


class UnsupportedPlatformError(ConfigurationError):
    """Exception raised when the platform is not one of the supported ones."""

    pass


class UnsupportedArchitectureError(ConfigurationError):
    """Exception raised when the architecture is not supported on the platform."""

    pass


# =============================================================================
# Resolution Errors
# =============================================================================


class ResolutionError(GetAria2Error):
    """
    Exception raised when no release asset can be selected.

    Attributes:
        repository: The GitHub repository that was scanned.
    """

    def __init__(
        self,
        message: str,
        repository: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.repository = repository


class AssetNotFoundError(ResolutionError):
    """Exception raised when no release carries an asset for the target."""

    pass


# =============================================================================
# Download Errors
# =============================================================================


class DownloadError(GetAria2Error):
    """
    Base exception for transport errors.

    Attributes:
        url: The URL that was being fetched when the error occurred.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: str | None = None,
    ) -> None:
        """
        Initialize the download exception.

        Args:
            message: The primary error message.
            url: The URL that was being fetched.
            details: Optional additional context.
        """
        super().__init__(message, details)
        self.url = url


class NetworkError(DownloadError):
    """
    Exception raised for network-related failures.

    This includes:
    - Connection timeouts
    - DNS resolution failures
    - Connection resets while streaming
    - Proxy failures
    """

    pass


class HTTPError(DownloadError):
    """
    Exception raised when the server answers with an error status.

    Attributes:
        status_code: The HTTP status code returned by the server.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, url, details)
        self.status_code = status_code


class RateLimitError(HTTPError):
    """
    Exception raised when the GitHub API rate limit is exhausted.

    Attributes:
        reset_time: When the rate limit resets (Unix timestamp).
    """

    def __init__(
        self,
        message: str = "GitHub API rate limit exceeded",
        reset_time: int | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(
            message,
            status_code=403,
            url=url,
            details=f"Resets at: {reset_time}",
        )
        self.reset_time = reset_time


# =============================================================================
# Archive Errors
# =============================================================================


class ArchiveError(GetAria2Error):
    """
    Exception raised for archive-related errors.

    Attributes:
        archive_url: URL of the archive being processed.
    """

    def __init__(
        self,
        message: str,
        archive_url: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.archive_url = archive_url


class UnsupportedArchiveError(ArchiveError):
    """Exception raised when the asset filename has no supported archive suffix."""

    pass


class CorruptedArchiveError(ArchiveError):
    """Exception raised when the archive or its compression layer is malformed."""

    pass


class BinaryNotFoundError(ArchiveError):
    """Exception raised when a fully read archive holds no aria2c entry."""

    pass
