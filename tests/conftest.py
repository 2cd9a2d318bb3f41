"""Shared fixtures: an in-memory remote store for sync tests."""

import threading
from contextlib import contextmanager
from typing import Optional

import pytest

from pyonedrive.exceptions import OneDriveDownloadError, OneDriveNetworkError
from pyonedrive.models import ChildrenPage, DriveItem
from pyonedrive.quickxor import quickxor_hash_base64


class FakeRemoteStore:
    """Remote store serving one folder from memory, with small pages."""

    def __init__(
        self,
        files: Optional[dict[str, bytes]] = None,
        folders: tuple[str, ...] = (),
        page_size: int = 2,
        folder_path: str = "Music",
    ):
        self.files = dict(files or {})
        self.folders = list(folders)
        self.page_size = page_size
        self.folder_path = folder_path
        self.without_hash: set[str] = set()
        self.fail_open: set[str] = set()
        self.fail_midway: set[str] = set()
        self.list_error: Optional[Exception] = None
        self.list_calls: list[Optional[str]] = []
        self.downloads: list[str] = []
        self.closed = False
        self._lock = threading.Lock()

    def _items(self) -> list[DriveItem]:
        items = [
            DriveItem(id=f"folder-{name}", name=name, is_folder=True)
            for name in self.folders
        ]
        for name, data in sorted(self.files.items()):
            items.append(
                DriveItem(
                    id=f"file-{name}",
                    name=name,
                    size=len(data),
                    quick_xor_hash=None
                    if name in self.without_hash
                    else quickxor_hash_base64(data),
                )
            )
        return items

    def list_children(
        self, folder_path: str, continuation: Optional[str] = None
    ) -> ChildrenPage:
        self.list_calls.append(continuation)
        if self.list_error is not None:
            raise self.list_error
        items = self._items()
        start = int(continuation.split("=", 1)[1]) if continuation else 0
        end = start + self.page_size
        next_link = None
        if end < len(items):
            next_link = (
                f"https://graph.test/v1.0/me/drive/root:/{folder_path}:/children"
                f"?$skiptoken={end}"
            )
        return ChildrenPage(items=items[start:end], next_link=next_link)

    def list_folder(self, folder_path: str) -> list[DriveItem]:
        return self._items()

    @contextmanager
    def download(self, entry, chunk_size: int = 4):
        with self._lock:
            self.downloads.append(entry.name)
        if entry.name in self.fail_open:
            raise OneDriveDownloadError("Download failed: itemNotFound", code="itemNotFound")
        data = self.files[entry.name]

        def chunks():
            for start in range(0, len(data), chunk_size):
                if entry.name in self.fail_midway and start > 0:
                    raise OneDriveNetworkError("Network error: connection reset")
                yield data[start : start + chunk_size]

        yield chunks()

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def remote_store():
    """Provide a factory for in-memory remote stores."""
    return FakeRemoteStore
