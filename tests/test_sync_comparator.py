"""Tests for reconciliation of local and remote inventories."""

import random
from pathlib import Path
from unittest.mock import patch

import pytest

from pyonedrive.models import DriveItem
from pyonedrive.quickxor import quickxor_hash_base64
from pyonedrive.sync.comparator import FileComparator, SyncAction
from pyonedrive.sync.filters import build_exclude_predicate
from pyonedrive.sync.localfs import LocalFileSystem
from pyonedrive.sync.scanner import LocalEntry, RemoteEntry


def remote_file(name, data, with_hash=True):
    return RemoteEntry(
        item=DriveItem(
            id=f"id-{name}",
            name=name,
            size=len(data),
            quick_xor_hash=quickxor_hash_base64(data) if with_hash else None,
        ),
        folder_path="Music",
    )


def remote_folder(name):
    return RemoteEntry(item=DriveItem(id=f"id-{name}", name=name, is_folder=True))


class TestFileComparator:
    """Tests for FileComparator.reconcile."""

    @pytest.fixture
    def local_dir(self, tmp_path):
        return tmp_path

    @pytest.fixture
    def comparator(self):
        return FileComparator(LocalFileSystem(), chunk_size=7)

    def scan(self, directory: Path) -> dict[str, LocalEntry]:
        return {e.name: e for e in LocalFileSystem().list_dir(directory)}

    def decide(self, comparator, local_dir, remote, **kwargs):
        plan = comparator.reconcile(self.scan(local_dir), remote, **kwargs)
        return plan, {d.name: d for d in plan.decisions}

    def test_new_remote_file(self, comparator, local_dir):
        plan, by_name = self.decide(comparator, local_dir, [remote_file("a", b"abc")])
        assert by_name["a"].action == SyncAction.FETCH
        assert by_name["a"].reason == "New remote file"
        assert [d.name for d in plan.fetch] == ["a"]

    def test_identical_file_skipped(self, comparator, local_dir):
        (local_dir / "a").write_bytes(b"same content")
        _, by_name = self.decide(comparator, local_dir, [remote_file("a", b"same content")])
        assert by_name["a"].action == SyncAction.SKIP
        assert by_name["a"].reason == "Content hash matches"

    def test_size_mismatch_fetched_without_hashing(self, comparator, local_dir):
        """Test a size difference decides without reading the file."""
        (local_dir / "a").write_bytes(b"short")
        with patch("pyonedrive.sync.comparator.hash_stream") as mock_hash:
            _, by_name = self.decide(comparator, local_dir, [remote_file("a", b"longer data")])
        mock_hash.assert_not_called()
        assert by_name["a"].action == SyncAction.FETCH
        assert by_name["a"].reason.startswith("Size differs")

    def test_same_size_different_content_fetched(self, comparator, local_dir):
        (local_dir / "a").write_bytes(b"AAAA")
        _, by_name = self.decide(comparator, local_dir, [remote_file("a", b"BBBB")])
        assert by_name["a"].action == SyncAction.FETCH
        assert by_name["a"].reason == "Content hash differs"

    def test_missing_remote_hash_fetched(self, comparator, local_dir):
        (local_dir / "a").write_bytes(b"data")
        _, by_name = self.decide(
            comparator, local_dir, [remote_file("a", b"data", with_hash=False)]
        )
        assert by_name["a"].action == SyncAction.FETCH

    def test_unreadable_local_file_fetched(self, comparator, local_dir):
        (local_dir / "a").write_bytes(b"data")
        with patch.object(LocalFileSystem, "open_read", side_effect=PermissionError("denied")):
            _, by_name = self.decide(comparator, local_dir, [remote_file("a", b"data")])
        assert by_name["a"].action == SyncAction.FETCH
        assert "unreadable" in by_name["a"].reason

    def test_known_fingerprint_skips_hashing(self, comparator, local_dir):
        """Test a recorded fingerprint avoids reading the local file."""
        (local_dir / "a").write_bytes(b"data")
        remote = remote_file("a", b"data")
        with patch("pyonedrive.sync.comparator.hash_stream") as mock_hash:
            _, by_name = self.decide(
                comparator,
                local_dir,
                [remote],
                known_fingerprints={"a": remote.fingerprint},
            )
        mock_hash.assert_not_called()
        assert by_name["a"].action == SyncAction.SKIP

    def test_stale_known_fingerprint_rehashes(self, comparator, local_dir):
        (local_dir / "a").write_bytes(b"data")
        _, by_name = self.decide(
            comparator,
            local_dir,
            [remote_file("a", b"dat2")],
            known_fingerprints={"a": "old-hash="},
        )
        assert by_name["a"].action == SyncAction.FETCH

    def test_remote_directory_is_error(self, comparator, local_dir):
        _, by_name = self.decide(comparator, local_dir, [remote_folder("sub")])
        assert by_name["sub"].action == SyncAction.ERROR
        assert by_name["sub"].reason == "Remote item is a directory"

    def test_local_directory_is_error(self, comparator, local_dir):
        """Test a local directory shadowing a remote file is not touched."""
        (local_dir / "a").mkdir()
        plan, by_name = self.decide(comparator, local_dir, [remote_file("a", b"x")])
        assert by_name["a"].action == SyncAction.ERROR
        assert by_name["a"].reason == "Local item is a directory"
        assert plan.delete == []

    def test_local_only_entries_deleted(self, comparator, local_dir):
        (local_dir / "old.mp3").write_bytes(b"x")
        (local_dir / "olddir").mkdir()
        plan, by_name = self.decide(comparator, local_dir, [])
        assert {d.name for d in plan.delete} == {"old.mp3", "olddir"}
        assert by_name["old.mp3"].reason == "Not present remotely"
        assert by_name["old.mp3"].remote_entry is None

    def test_excluded_entries_left_alone(self, comparator, local_dir):
        """Test excluded names are neither fetched nor deleted."""
        (local_dir / "cover.jpg").write_bytes(b"x")
        exclude = build_exclude_predicate(extensions=["mp3"])
        plan, by_name = self.decide(
            comparator,
            local_dir,
            [remote_file("song.mp3", b"1"), remote_file("remote.png", b"2")],
            exclude=exclude,
        )
        assert set(by_name) == {"song.mp3"}
        assert plan.delete == []

    def test_local_entries_consumed(self, comparator, local_dir):
        (local_dir / "a").write_bytes(b"1")
        (local_dir / "b").write_bytes(b"2")
        local = self.scan(local_dir)
        comparator.reconcile(local, [remote_file("a", b"1")])
        assert set(local) == {"b"}

    def test_every_name_decided_once(self, comparator, local_dir):
        """Test the plan partitions the union of both inventories."""
        for name in ("same", "changed", "local_only", "dir_clash"):
            (local_dir / name).write_bytes(name.encode())
        (local_dir / "dir_clash").unlink()
        (local_dir / "dir_clash").mkdir()
        remote = [
            remote_file("same", b"same"),
            remote_file("changed", b"CHANGED"),
            remote_file("new", b"new"),
            remote_file("dir_clash", b"x"),
            remote_folder("remote_dir"),
        ]
        plan, _ = self.decide(comparator, local_dir, remote)

        names = [d.name for d in plan.decisions]
        assert sorted(names) == sorted(
            ["same", "changed", "local_only", "dir_clash", "new", "remote_dir"]
        )
        assert {d.name for d in plan.skip} == {"same"}
        assert {d.name for d in plan.fetch} == {"changed", "new"}
        assert {d.name for d in plan.errors} == {"dir_clash", "remote_dir"}
        assert {d.name for d in plan.delete} == {"local_only"}

    def test_excluded_remote_name_protects_local_entry(self, comparator, local_dir):
        """Test a local entry sharing an excluded remote name is not deleted."""
        (local_dir / "cover.jpg").mkdir()
        exclude = build_exclude_predicate(extensions=["mp3"])
        plan, _ = self.decide(
            comparator, local_dir, [remote_file("cover.jpg", b"x")], exclude=exclude
        )
        assert plan.decisions == []

    @pytest.mark.parametrize("seed", range(20))
    def test_random_inventories_partitioned(self, comparator, local_dir, seed):
        """Test any pair of inventories yields one decision per in-scope name."""
        rng = random.Random(seed)
        pool = ["a.mp3", "b.mp3", "c.jpg", ".hidden.mp3", "skip.mp3", "d", "e.mp3"]
        exclude = build_exclude_predicate(extensions=["mp3"], patterns=["skip*"])

        local_kinds = {}
        remote = []
        for name in pool:
            kind = rng.choice(["absent", "file", "dir"])
            if kind == "file":
                (local_dir / name).write_bytes(rng.choice([b"one", b"two", b"three"]))
            elif kind == "dir":
                (local_dir / name).mkdir()
            if kind != "absent":
                local_kinds[name] = kind

            kind = rng.choice(["absent", "file", "folder"])
            if kind == "file":
                remote.append(remote_file(name, rng.choice([b"one", b"two", b"three"])))
            elif kind == "folder":
                remote.append(remote_folder(name))

        local = self.scan(local_dir)
        expected = {r.name for r in remote if not exclude(r)}
        remote_names = {r.name for r in remote}
        expected |= {
            name
            for name, entry in local.items()
            if name not in remote_names and not exclude(entry)
        }

        plan, by_name = self.decide(comparator, local_dir, remote, exclude=exclude)

        names = [d.name for d in plan.decisions]
        assert len(names) == len(set(names))
        assert set(names) == expected
        for name, decision in by_name.items():
            if name not in remote_names:
                assert decision.action == SyncAction.DELETE_LOCAL
            elif name not in local_kinds:
                assert decision.action in (SyncAction.FETCH, SyncAction.ERROR)
            else:
                assert decision.action != SyncAction.DELETE_LOCAL
