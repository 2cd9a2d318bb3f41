"""Directory scanning for sync operations.

Builds the two inventories that get reconciled: the entries of one local
directory and the children of one remote folder. Neither side recurses.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..models import DriveItem

if TYPE_CHECKING:
    from .protocols import LocalFSProtocol, RemoteStoreProtocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalEntry:
    """Represents an entry of the local directory at scan time."""

    name: str
    """File or directory name"""

    is_directory: bool
    """Whether the entry is a directory"""

    size: int
    """Size in bytes (0 for directories)"""

    path: Path
    """Absolute path of the entry"""

    @classmethod
    def from_path(cls, path: Path) -> "LocalEntry":
        """Create a LocalEntry by stat-ing ``path``.

        Raises:
            OSError: If the path cannot be stat-ed
        """
        is_directory = path.is_dir()
        size = 0 if is_directory else path.stat().st_size
        return cls(name=path.name, is_directory=is_directory, size=size, path=path)


@dataclass(frozen=True)
class RemoteEntry:
    """Represents a child of the remote folder."""

    item: DriveItem
    """Drive item from the API"""

    folder_path: str = ""
    """Path of the parent folder, relative to the drive root"""

    @property
    def name(self) -> str:
        return self.item.name

    @property
    def id(self) -> str:
        return self.item.id

    @property
    def is_directory(self) -> bool:
        return self.item.is_folder

    @property
    def size(self) -> int:
        return 0 if self.item.is_folder else self.item.size

    @property
    def fingerprint(self) -> Optional[str]:
        """Base64 QuickXorHash computed by the service."""
        return self.item.quick_xor_hash

    @property
    def mime_type(self) -> Optional[str]:
        return self.item.mime_type

    @property
    def remote_path(self) -> str:
        """Path of the entry relative to the drive root."""
        folder = self.folder_path.strip("/")
        return f"{folder}/{self.name}" if folder else self.name


class DirectoryScanner:
    """Lists the local and remote side of a sync.

    Examples:
        >>> scanner = DirectoryScanner(client, LocalFileSystem())
        >>> local = scanner.scan_local(Path("songs"))
        >>> remote = scanner.scan_remote("Music/mp3")
    """

    def __init__(
        self,
        remote: "RemoteStoreProtocol",
        fs: "LocalFSProtocol",
    ):
        """Initialize directory scanner.

        Args:
            remote: Remote store used for folder listings
            fs: Local filesystem access
        """
        self.remote = remote
        self.fs = fs

    def scan_local(self, directory: Path) -> dict[str, LocalEntry]:
        """List one local directory, creating it if it does not exist.

        Args:
            directory: Directory to scan

        Returns:
            Mapping of entry name to LocalEntry

        Raises:
            OSError: If the directory cannot be created or listed
        """
        self.fs.create_dir(directory)
        entries = self.fs.list_dir(directory)
        logger.debug(f"Found {len(entries)} local entries in {directory}")
        return {entry.name: entry for entry in entries}

    def scan_remote(self, folder_path: str) -> list[RemoteEntry]:
        """List all children of a remote folder, following pagination.

        Args:
            folder_path: Folder path relative to the drive root

        Returns:
            List of RemoteEntry objects

        Raises:
            OneDriveAPIError: If any page request fails; no partial
                inventory is returned
        """
        start = time.time()
        entries: list[RemoteEntry] = []
        continuation: Optional[str] = None
        pages = 0

        while True:
            page = self.remote.list_children(folder_path, continuation)
            pages += 1
            entries.extend(
                RemoteEntry(item=item, folder_path=folder_path) for item in page.items
            )
            continuation = page.continuation
            if continuation is None:
                break

        logger.debug(
            "Remote scan of %r took %.2fs: %d entries in %d page(s)",
            folder_path,
            time.time() - start,
            len(entries),
            pages,
        )
        return entries
