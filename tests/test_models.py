"""Tests for the Graph data models."""

from pyonedrive.models import ChildrenPage, DriveItem

FILE_JSON = {
    "id": "01ABC",
    "name": "song.mp3",
    "size": 4096,
    "createdDateTime": "2025-01-01T00:00:00Z",
    "lastModifiedDateTime": "2025-01-02T00:00:00Z",
    "webUrl": "https://onedrive.live.com/?id=01ABC",
    "@microsoft.graph.downloadUrl": "https://download.test/01ABC",
    "file": {
        "mimeType": "audio/mpeg",
        "hashes": {
            "quickXorHash": "YQAAAAAAAAAAAAAAAQAAAAAAAAA=",
            "sha1Hash": "86F7E437FAA5A7FCE15D1DDCB9EAEAEA377667B8",
        },
    },
}

FOLDER_JSON = {
    "id": "01DEF",
    "name": "albums",
    "size": 123456,
    "folder": {"childCount": 7},
}


class TestDriveItem:
    """Tests for DriveItem parsing."""

    def test_file_from_dict(self):
        """Test parsing a file with hashes."""
        item = DriveItem.from_dict(FILE_JSON)
        assert item.id == "01ABC"
        assert item.name == "song.mp3"
        assert item.size == 4096
        assert item.is_file
        assert not item.is_folder
        assert item.mime_type == "audio/mpeg"
        assert item.quick_xor_hash == "YQAAAAAAAAAAAAAAAQAAAAAAAAA="
        assert item.sha1_hash == "86F7E437FAA5A7FCE15D1DDCB9EAEAEA377667B8"
        assert item.download_url == "https://download.test/01ABC"
        assert item.updated_at == "2025-01-02T00:00:00Z"
        assert item.raw is FILE_JSON

    def test_folder_from_dict(self):
        """Test parsing a folder facet."""
        item = DriveItem.from_dict(FOLDER_JSON)
        assert item.is_folder
        assert item.child_count == 7
        assert item.quick_xor_hash is None
        assert item.mime_type is None

    def test_file_without_hashes(self):
        """Test files on drives that report no hash."""
        item = DriveItem.from_dict({"id": "1", "name": "a", "size": 1, "file": {}})
        assert item.is_file
        assert item.quick_xor_hash is None

    def test_missing_size(self):
        item = DriveItem.from_dict({"id": "1", "name": "a", "file": {}})
        assert item.size == 0

    def test_to_dict(self):
        data = DriveItem.from_dict(FILE_JSON).to_dict()
        assert data["type"] == "file"
        assert data["quick_xor_hash"] == "YQAAAAAAAAAAAAAAAQAAAAAAAAA="
        assert DriveItem.from_dict(FOLDER_JSON).to_dict()["type"] == "folder"

    def test_size_formatted(self):
        assert DriveItem.from_dict(FILE_JSON).size_formatted == "4.0 KB"


class TestChildrenPage:
    """Tests for children page parsing."""

    def test_last_page(self):
        page = ChildrenPage.from_api_response({"value": [FILE_JSON, FOLDER_JSON]})
        assert [item.name for item in page.items] == ["song.mp3", "albums"]
        assert page.next_link is None
        assert page.continuation is None

    def test_page_with_next_link(self):
        """Test the continuation keeps only the query of the next link."""
        page = ChildrenPage.from_api_response(
            {
                "value": [FILE_JSON],
                "@odata.nextLink": "https://graph.microsoft.com/v1.0/me/drive/"
                "root:/Music:/children?$skiptoken=abc123",
            }
        )
        assert page.continuation == "$skiptoken=abc123"

    def test_empty_response(self):
        page = ChildrenPage.from_api_response({})
        assert page.items == []
        assert page.continuation is None
