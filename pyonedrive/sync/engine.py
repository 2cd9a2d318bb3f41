"""Core sync engine mirroring a remote folder into a local directory."""

import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..exceptions import SyncSetupError, SyncTypeMismatchError
from ..utils import DEFAULT_CHUNK_SIZE, DEFAULT_MAX_WORKERS
from .comparator import FileComparator, ReconcilePlan, SyncDecision
from .events import (
    EventSink,
    SyncEvent,
    SyncEventDelete,
    SyncEventError,
    SyncEventSkip,
)
from .localfs import LocalFileSystem
from .operations import SyncOperations
from .protocols import ExcludePredicate, LocalFSProtocol, RemoteStoreProtocol
from .scanner import DirectoryScanner
from .transfer import TransferEngine

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Aggregate outcome of one sync pass."""

    downloaded: int = 0
    skipped: int = 0
    deleted: int = 0
    errors: int = 0

    cancelled: bool = False
    """True if the pass was cancelled (no deletions were made)"""

    fingerprints: dict[str, str] = field(default_factory=dict)
    """Name to remote fingerprint of every file now in sync"""

    failed: list[str] = field(default_factory=list)
    """Names of entries that could not be synced"""

    def as_dict(self) -> dict:
        return {
            "downloaded": self.downloaded,
            "skipped": self.skipped,
            "deleted": self.deleted,
            "errors": self.errors,
            "cancelled": self.cancelled,
            "failed": sorted(self.failed),
        }


class SyncEngine:
    """One-way mirror of a remote folder into a local directory.

    Remote wins: new or changed remote files are downloaded, local files
    missing remotely are deleted, matching files are skipped. Only one
    folder level is synced.
    """

    def __init__(
        self,
        client: RemoteStoreProtocol,
        fs: Optional[LocalFSProtocol] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        queue_depth: Optional[int] = None,
    ):
        """Initialize sync engine.

        Args:
            client: Remote store (usually a OneDriveClient)
            fs: Local filesystem access (default: LocalFileSystem)
            max_workers: Number of parallel downloads (default: 5)
            chunk_size: Chunk size for downloads and hashing
            queue_depth: Bound of the download dispatch queue
        """
        self.client = client
        self.fs = fs or LocalFileSystem()
        self.scanner = DirectoryScanner(client, self.fs)
        self.comparator = FileComparator(self.fs, chunk_size=chunk_size)
        self.operations = SyncOperations(client, self.fs, chunk_size=chunk_size)
        self.transfers = TransferEngine(
            self.operations, max_workers=max_workers, queue_depth=queue_depth
        )

    def sync_folder(
        self,
        remote_path: str,
        local_path: Path,
        exclude: Optional[ExcludePredicate] = None,
        on_event: Optional[EventSink] = None,
        cancel_event: Optional[threading.Event] = None,
        known_fingerprints: Optional[dict[str, str]] = None,
    ) -> SyncResult:
        """Mirror a remote folder into a local directory.

        Args:
            remote_path: Folder path relative to the drive root ("" = root)
            local_path: Destination directory, created if missing
            exclude: Predicate for entries outside the sync scope
            on_event: Event sink, may be called from several threads at once
            cancel_event: Set it to stop the pass; running downloads stop at
                the next chunk and no deletions are made
            known_fingerprints: Fingerprints recorded by a previous run

        Returns:
            SyncResult with counters; item failures never raise

        Raises:
            SyncSetupError: If the local directory cannot be created or listed
            OneDriveAPIError: If listing the remote folder fails

        Examples:
            >>> engine = SyncEngine(client)
            >>> result = engine.sync_folder("Music/mp3", Path("songs"))
            >>> print(f"Downloaded {result.downloaded} files")
        """
        emit = on_event or (lambda event: None)
        cancel_event = cancel_event or threading.Event()
        remote_path = remote_path.strip("/")
        start = time.time()

        # Step 1: Build inventories
        try:
            local_entries = self.scanner.scan_local(local_path)
        except OSError as e:
            raise SyncSetupError(
                f"Cannot prepare local directory {local_path}: {e}"
            ) from e
        remote_entries = self.scanner.scan_remote(remote_path)

        # Step 2: Reconcile
        plan = self.comparator.reconcile(
            local_entries,
            remote_entries,
            exclude=exclude,
            known_fingerprints=known_fingerprints,
        )
        result = SyncResult()
        self._report_plan(plan, local_path, result, emit)

        # Step 3: Download, waits for every worker
        for transfer in self.transfers.run(
            plan.fetch, local_path, emit=emit, cancel_event=cancel_event
        ):
            if transfer.success:
                result.downloaded += 1
                if transfer.fingerprint:
                    result.fingerprints[transfer.name] = transfer.fingerprint
            else:
                result.errors += 1
                result.failed.append(transfer.name)

        # Step 4: Delete local-only entries
        if cancel_event.is_set():
            logger.info("Sync cancelled, skipping deletions")
            result.cancelled = True
        else:
            self._delete_local_only(plan.delete, result, emit)

        logger.debug(
            "Synced %r -> %s in %.2fs: %s",
            remote_path,
            local_path,
            time.time() - start,
            result.as_dict(),
        )
        return result

    def _report_plan(
        self,
        plan: ReconcilePlan,
        local_path: Path,
        result: SyncResult,
        emit: EventSink,
    ) -> None:
        """Emit events for skips and reconciliation errors."""
        for decision in plan.skip:
            remote = decision.remote_entry
            if remote is None:
                continue
            result.skipped += 1
            if remote.fingerprint:
                result.fingerprints[decision.name] = remote.fingerprint
            emit(
                SyncEventSkip(
                    local_path=str(local_path / decision.name),
                    remote_path=remote.remote_path,
                )
            )

        for decision in plan.errors:
            result.errors += 1
            result.failed.append(decision.name)
            emit(self._decision_error(decision, local_path))

    def _decision_error(self, decision: SyncDecision, local_path: Path) -> SyncEvent:
        remote = decision.remote_entry
        logger.debug(f"Cannot sync {decision.name}: {decision.reason}")
        return SyncEventError(
            local_path=str(local_path / decision.name),
            remote_path=remote.remote_path if remote else None,
            error=SyncTypeMismatchError(decision.reason),
        )

    def _delete_local_only(
        self,
        decisions: list[SyncDecision],
        result: SyncResult,
        emit: EventSink,
    ) -> None:
        """Remove local entries that no longer exist remotely."""
        for decision in decisions:
            local = decision.local_entry
            if local is None:
                continue
            try:
                self.operations.delete_local(local)
            except OSError as e:
                logger.warning(f"Failed to delete {local.path}: {e}")
                result.errors += 1
                result.failed.append(decision.name)
                emit(SyncEventError(local_path=str(local.path), error=e))
                continue
            result.deleted += 1
            emit(SyncEventDelete(local_path=str(local.path)))
