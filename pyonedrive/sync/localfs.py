"""Local filesystem access used by the sync engine."""

import logging
import os
from pathlib import Path
from typing import BinaryIO

from .scanner import LocalEntry

logger = logging.getLogger(__name__)


class LocalFileSystem:
    """Thin pathlib wrapper implementing the local side of a sync."""

    def list_dir(self, path: Path) -> list[LocalEntry]:
        """List the direct entries of ``path``.

        Entries that vanish between listing and stat are skipped.
        """
        entries = []
        for item in path.iterdir():
            try:
                entries.append(LocalEntry.from_path(item))
            except FileNotFoundError:
                logger.debug(f"Entry disappeared while scanning: {item}")
        return entries

    def create_dir(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def create(self, path: Path) -> BinaryIO:
        """Open ``path`` for writing, truncating existing content."""
        return open(path, "wb")

    def open_read(self, path: Path) -> BinaryIO:
        return open(path, "rb")

    def remove(self, path: Path) -> None:
        """Remove a file or an empty directory.

        Raises:
            OSError: If removal fails (e.g. the directory is not empty)
        """
        if path.is_dir() and not path.is_symlink():
            path.rmdir()
        else:
            path.unlink()

    def stat(self, path: Path) -> os.stat_result:
        return path.stat()
