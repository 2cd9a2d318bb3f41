"""Parallel execution of the downloads decided by reconciliation."""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..exceptions import OneDriveError, SyncCancelledError
from ..utils import DEFAULT_MAX_WORKERS
from .comparator import SyncDecision
from .events import (
    EventSink,
    SyncEventBegin,
    SyncEventEnd,
    SyncEventError,
    SyncEventProgress,
)
from .operations import SyncOperations

logger = logging.getLogger(__name__)


def _discard(event: object) -> None:
    pass


@dataclass
class TransferResult:
    """Outcome of one download, sent from a worker to the aggregator."""

    name: str
    """Entry name"""

    success: bool
    """Whether the file was fully written"""

    fingerprint: Optional[str] = None
    """Remote fingerprint of the written content (on success)"""

    bytes_written: int = 0
    """Bytes written to the local file"""

    error: Optional[BaseException] = None
    """Failure cause (on failure)"""

    elapsed: float = 0.0
    """Wall time spent on the item in seconds"""


class TransferEngine:
    """Downloads a fetch set with a fixed number of worker threads.

    Workers share no mutable state: each returns a TransferResult and the
    calling thread collects them. Events are emitted directly from the
    worker threads.
    """

    def __init__(
        self,
        operations: SyncOperations,
        max_workers: int = DEFAULT_MAX_WORKERS,
        queue_depth: Optional[int] = None,
    ):
        """Initialize the transfer engine.

        Args:
            operations: Download primitives
            max_workers: Number of parallel downloads (default: 5)
            queue_depth: Items allowed to wait for a worker before the
                dispatcher blocks (default: the number of items)
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.operations = operations
        self.max_workers = max_workers
        self.queue_depth = queue_depth

    def run(
        self,
        decisions: list[SyncDecision],
        local_root: Path,
        emit: Optional[EventSink] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> list[TransferResult]:
        """Download every decision's remote entry into ``local_root``.

        Blocks until all workers are done. Per-item failures are reported
        through events and results, never raised.

        Args:
            decisions: FETCH decisions, one per remote entry
            local_root: Destination directory
            emit: Event sink
            cancel_event: When set, no further items are started and
                running downloads stop at the next chunk

        Returns:
            One TransferResult per decision
        """
        emit = emit or _discard
        cancel_event = cancel_event or threading.Event()
        if not decisions:
            return []

        depth = self.queue_depth if self.queue_depth is not None else len(decisions)
        slots = threading.BoundedSemaphore(self.max_workers + max(depth, 0))
        results: list[TransferResult] = []
        start = time.time()

        logger.debug(
            f"Downloading {len(decisions)} file(s) with {self.max_workers} workers"
        )

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures: dict[Future, SyncDecision] = {}
            try:
                for index, decision in enumerate(decisions):
                    if cancel_event.is_set():
                        results.extend(
                            self._cancelled(d, local_root, emit)
                            for d in decisions[index:]
                        )
                        break
                    slots.acquire()
                    future = executor.submit(
                        self._transfer_one, decision, local_root, emit, cancel_event
                    )
                    future.add_done_callback(lambda _: slots.release())
                    futures[future] = decision

                for future in as_completed(futures):
                    decision = futures[future]
                    try:
                        result = future.result()
                    except Exception as e:
                        logger.error(
                            f"Unexpected error while downloading {decision.name}: {e}"
                        )
                        result = TransferResult(
                            name=decision.name, success=False, error=e
                        )
                    results.append(result)
                    if result.success:
                        logger.debug(f"Completed {result.name} in {result.elapsed:.2f}s")
                    else:
                        logger.debug(f"Failed {result.name} in {result.elapsed:.2f}s")
            except KeyboardInterrupt:
                cancel_event.set()
                raise

        logger.debug(f"Transfers finished in {time.time() - start:.2f}s")
        return results

    def _cancelled(
        self, decision: SyncDecision, local_root: Path, emit: EventSink
    ) -> TransferResult:
        error = SyncCancelledError("Sync cancelled before download started")
        remote = decision.remote_entry
        emit(
            SyncEventError(
                local_path=str(local_root / decision.name),
                remote_path=remote.remote_path if remote else None,
                error=error,
            )
        )
        return TransferResult(name=decision.name, success=False, error=error)

    def _failed(
        self,
        name: str,
        local_str: str,
        remote_path: str,
        error: Exception,
        emit: EventSink,
        start: float,
    ) -> TransferResult:
        emit(SyncEventError(local_path=local_str, remote_path=remote_path, error=error))
        return TransferResult(
            name=name, success=False, error=error, elapsed=time.time() - start
        )

    def _transfer_one(
        self,
        decision: SyncDecision,
        local_root: Path,
        emit: EventSink,
        cancel_event: threading.Event,
    ) -> TransferResult:
        """Download a single entry. Runs on a worker thread."""
        if cancel_event.is_set():
            return self._cancelled(decision, local_root, emit)

        remote = decision.remote_entry
        if remote is None:
            raise ValueError(f"FETCH decision without remote entry: {decision.name}")
        local_path = local_root / remote.name
        local_str = str(local_path)
        remote_path = remote.remote_path
        start = time.time()

        emit(SyncEventBegin(local_path=local_str, remote_path=remote_path))

        def on_progress(done: int, total: int) -> None:
            emit(
                SyncEventProgress(
                    local_path=local_str,
                    remote_path=remote_path,
                    bytes_done=done,
                    bytes_total=total,
                )
            )

        try:
            written = self.operations.download_file(
                remote,
                local_path,
                progress_callback=on_progress,
                cancel_event=cancel_event,
            )
        except (OneDriveError, OSError) as e:
            logger.debug(f"Download of {remote_path} failed: {e}")
            return self._failed(remote.name, local_str, remote_path, e, emit, start)
        except Exception as e:
            logger.error(f"Unexpected error while downloading {remote_path}: {e}")
            return self._failed(remote.name, local_str, remote_path, e, emit, start)

        emit(SyncEventEnd(local_path=local_str, remote_path=remote_path, success=True))
        return TransferResult(
            name=remote.name,
            success=True,
            fingerprint=remote.fingerprint,
            bytes_written=written,
            elapsed=time.time() - start,
        )
