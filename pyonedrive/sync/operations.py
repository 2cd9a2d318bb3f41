"""Sync operations wrapper for the download and local delete primitives."""

import threading
from pathlib import Path
from typing import Callable, Optional

from ..exceptions import SyncCancelledError
from ..utils import DEFAULT_CHUNK_SIZE
from .protocols import LocalFSProtocol, RemoteStoreProtocol
from .scanner import LocalEntry, RemoteEntry


class SyncOperations:
    """Unified download/delete operations on top of the two stores."""

    def __init__(
        self,
        remote: RemoteStoreProtocol,
        fs: LocalFSProtocol,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        """Initialize sync operations.

        Args:
            remote: Remote store to download from
            fs: Local filesystem to write to
            chunk_size: Size of streamed chunks
        """
        self.remote = remote
        self.fs = fs
        self.chunk_size = chunk_size

    def download_file(
        self,
        remote_entry: RemoteEntry,
        local_path: Path,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> int:
        """Stream a remote file into ``local_path``.

        The destination is created or truncated before the first byte is
        written. On failure it may be left partially written; the next sync
        sees a size or hash mismatch and downloads it again.

        Args:
            remote_entry: Remote file to download
            local_path: Local path where the file is written
            progress_callback: Optional callback
                function(bytes_downloaded, total_bytes)
            cancel_event: Checked between chunks

        Returns:
            Number of bytes written

        Raises:
            OneDriveAPIError: If the download fails
            OSError: If writing fails
            SyncCancelledError: If cancelled mid-transfer
        """
        total = remote_entry.size
        written = 0

        with self.remote.download(remote_entry, chunk_size=self.chunk_size) as chunks:
            with self.fs.create(local_path) as f:
                for chunk in chunks:
                    if cancel_event is not None and cancel_event.is_set():
                        raise SyncCancelledError(
                            f"Download of {remote_entry.name} cancelled"
                        )
                    f.write(chunk)
                    written += len(chunk)
                    if progress_callback:
                        progress_callback(written, total)

        return written

    def delete_local(self, local_entry: LocalEntry) -> None:
        """Delete a local file (or empty directory).

        Raises:
            OSError: If removal fails
        """
        self.fs.remove(local_entry.path)
