"""pyonedrive - mirror OneDrive folders to a local directory."""

from .api import OneDriveClient
from .exceptions import (
    OneDriveAPIError,
    OneDriveAuthenticationError,
    OneDriveConfigError,
    OneDriveDownloadError,
    OneDriveError,
    OneDriveInvalidResponseError,
    OneDriveNetworkError,
    OneDriveNotFoundError,
    OneDrivePermissionError,
    OneDriveRateLimitError,
    SyncCancelledError,
    SyncError,
    SyncSetupError,
    SyncTypeMismatchError,
)
from .quickxor import QuickXorHasher, hash_file, quickxor_hash, quickxor_hash_base64

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "OneDriveClient",
    "OneDriveError",
    "OneDriveAPIError",
    "OneDriveAuthenticationError",
    "OneDriveConfigError",
    "OneDriveDownloadError",
    "OneDriveInvalidResponseError",
    "OneDriveNetworkError",
    "OneDriveNotFoundError",
    "OneDrivePermissionError",
    "OneDriveRateLimitError",
    "SyncError",
    "SyncSetupError",
    "SyncCancelledError",
    "SyncTypeMismatchError",
    "QuickXorHasher",
    "hash_file",
    "quickxor_hash",
    "quickxor_hash_base64",
]
