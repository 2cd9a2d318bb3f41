"""Interfaces of the collaborators the sync engine depends on.

The engine only needs a small slice of the remote API and of the local
filesystem. Anything implementing these protocols can be plugged in,
which is how the tests run the engine against in-memory stores.
"""

import os
from collections.abc import Iterator
from contextlib import AbstractContextManager
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Callable, Optional, Protocol

if TYPE_CHECKING:
    from ..models import ChildrenPage
    from .scanner import LocalEntry, RemoteEntry


class EntryProtocol(Protocol):
    """Attributes shared by local and remote entries."""

    @property
    def name(self) -> str: ...

    @property
    def is_directory(self) -> bool: ...

    @property
    def size(self) -> int: ...


ExcludePredicate = Callable[[EntryProtocol], bool]
"""Returns True for entries outside the sync scope (never fetched or deleted)."""


class RemoteStoreProtocol(Protocol):
    """Remote side: paginated folder listing and streaming downloads."""

    def list_children(
        self, folder_path: str, continuation: Optional[str] = None
    ) -> "ChildrenPage":
        """Return one page of children; ``continuation`` is the query part
        of the previous page's next link."""
        ...

    def download(
        self, entry: "RemoteEntry", chunk_size: int = ...
    ) -> AbstractContextManager[Iterator[bytes]]:
        """Open the content of a remote file as an iterator of chunks."""
        ...


class LocalFSProtocol(Protocol):
    """Local side: a flat view of one directory."""

    def list_dir(self, path: Path) -> list["LocalEntry"]: ...

    def create_dir(self, path: Path) -> None: ...

    def create(self, path: Path) -> AbstractContextManager[BinaryIO]: ...

    def open_read(self, path: Path) -> AbstractContextManager[BinaryIO]: ...

    def remove(self, path: Path) -> None: ...

    def stat(self, path: Path) -> os.stat_result: ...
