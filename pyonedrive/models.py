"""Data models for Graph drive items."""

from dataclasses import dataclass, field
from typing import Any, Optional

from .utils import format_size, split_next_link


@dataclass
class DriveItem:
    """A file or folder as described by the Graph ``driveItem`` resource."""

    id: str
    """Unique item id within the drive"""

    name: str
    """Item name, unique within its parent folder"""

    size: int = 0
    """Size in bytes (for folders: total size of the content)"""

    is_folder: bool = False
    """True if the item carries a ``folder`` facet"""

    child_count: int = 0
    """Number of children for folders"""

    mime_type: Optional[str] = None
    """MIME type reported in the ``file`` facet"""

    quick_xor_hash: Optional[str] = None
    """Base64 QuickXorHash of the file content"""

    sha1_hash: Optional[str] = None
    """SHA1 hash (hex), only reported by some drive types"""

    created_at: Optional[str] = None
    """ISO timestamp of creation"""

    updated_at: Optional[str] = None
    """ISO timestamp of last modification"""

    web_url: Optional[str] = None
    """Browser URL of the item"""

    download_url: Optional[str] = None
    """Short-lived pre-authenticated download URL"""

    raw: dict = field(default_factory=dict, repr=False, compare=False)
    """The unmodified API payload"""

    @property
    def is_file(self) -> bool:
        return not self.is_folder

    @property
    def size_formatted(self) -> str:
        return format_size(self.size)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DriveItem":
        """Create a DriveItem from a Graph JSON object."""
        file_facet = data.get("file") or {}
        folder_facet = data.get("folder")
        hashes = file_facet.get("hashes") or {}

        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            size=int(data.get("size") or 0),
            is_folder=folder_facet is not None,
            child_count=int((folder_facet or {}).get("childCount") or 0),
            mime_type=file_facet.get("mimeType"),
            quick_xor_hash=hashes.get("quickXorHash"),
            sha1_hash=hashes.get("sha1Hash"),
            created_at=data.get("createdDateTime"),
            updated_at=data.get("lastModifiedDateTime"),
            web_url=data.get("webUrl"),
            download_url=data.get("@microsoft.graph.downloadUrl")
            or data.get("@content.downloadUrl"),
            raw=data,
        )

    def to_dict(self) -> dict[str, Any]:
        """Return a compact, JSON-serialisable representation."""
        return {
            "id": self.id,
            "name": self.name,
            "type": "folder" if self.is_folder else "file",
            "size": self.size,
            "mime_type": self.mime_type,
            "quick_xor_hash": self.quick_xor_hash,
            "updated_at": self.updated_at,
        }


@dataclass
class ChildrenPage:
    """One page of a folder listing."""

    items: list[DriveItem]
    """Items on this page"""

    next_link: Optional[str] = None
    """Full ``@odata.nextLink`` URL if more pages follow"""

    @property
    def continuation(self) -> Optional[str]:
        """Query portion of the next link, or None on the last page."""
        if not self.next_link:
            return None
        return split_next_link(self.next_link)

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "ChildrenPage":
        """Parse a ``children`` collection response."""
        return cls(
            items=[DriveItem.from_dict(item) for item in data.get("value", [])],
            next_link=data.get("@odata.nextLink") or None,
        )
