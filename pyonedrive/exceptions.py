"""Exceptions raised by pyonedrive."""

from typing import Optional


class OneDriveError(Exception):
    """Base class for all pyonedrive errors."""


class OneDriveConfigError(OneDriveError):
    """Raised when required configuration (e.g. the access token) is missing."""


class OneDriveAPIError(OneDriveError):
    """Raised when the Graph API returns an error or cannot be reached.

    Attributes:
        code: Graph error code (e.g. "itemNotFound"), if reported
        request_id: Graph request id, useful when contacting support
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.request_id = request_id

    def __str__(self) -> str:
        if self.code:
            return f"{self.code}: {self.message}"
        return self.message


class OneDriveAuthenticationError(OneDriveAPIError):
    """Access token is invalid or expired."""


class OneDrivePermissionError(OneDriveAPIError):
    """Access to the resource is forbidden."""


class OneDriveNotFoundError(OneDriveAPIError):
    """Requested drive item does not exist."""


class OneDriveRateLimitError(OneDriveAPIError):
    """Too many requests, the service asked us to back off."""


class OneDriveNetworkError(OneDriveAPIError):
    """Transport level failure (DNS, connection reset, timeout...)."""


class OneDriveInvalidResponseError(OneDriveAPIError):
    """The service answered with something that is not the expected JSON."""


class OneDriveDownloadError(OneDriveAPIError):
    """Downloading file content failed."""


class SyncError(OneDriveError):
    """Base class for errors raised by the sync engine."""


class SyncSetupError(SyncError):
    """The local destination could not be created or listed."""


class SyncCancelledError(SyncError):
    """A transfer was abandoned because the sync was cancelled."""


class SyncTypeMismatchError(SyncError):
    """A name is a directory on one side of the sync and a file on the other."""
