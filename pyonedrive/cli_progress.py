"""CLI progress display for sync operations.

This module provides a Rich-based progress display fed by the events of
the sync engine.
"""

import threading
from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TransferSpeedColumn,
)

from .sync.events import (
    SyncEvent,
    SyncEventBegin,
    SyncEventDelete,
    SyncEventEnd,
    SyncEventError,
    SyncEventKind,
    SyncEventProgress,
    SyncEventSkip,
    check_handlers,
    dispatch_event,
    format_event,
)


class SyncProgressDisplay:
    """Rich-based progress display for sync operations.

    Shows one bar per running download. Skip, delete and error events
    are printed above the bars.

    Events arrive from several worker threads; the display serialises
    them with its own lock.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        """Initialize the progress display."""
        self._console = console
        self._progress: Optional[Progress] = None
        self._file_tasks: dict[str, TaskID] = {}
        self._lock = threading.Lock()
        self._handlers = {
            SyncEventKind.BEGIN: self._on_begin,
            SyncEventKind.PROGRESS: self._on_progress,
            SyncEventKind.END: self._on_end,
            SyncEventKind.SKIP: self._on_message,
            SyncEventKind.DELETE: self._on_message,
            SyncEventKind.ERROR: self._on_error,
        }
        check_handlers(self._handlers)

    def handle_event(self, event: SyncEvent) -> None:
        """Event sink to pass to SyncEngine.sync_folder."""
        with self._lock:
            if self._progress is None:
                return
            dispatch_event(event, self._handlers)

    def _on_begin(self, event: SyncEventBegin) -> None:
        if self._progress is None:
            return
        name = event.remote_path or event.local_path
        self._file_tasks[event.local_path] = self._progress.add_task(
            name.rsplit("/", 1)[-1], total=None
        )

    def _on_progress(self, event: SyncEventProgress) -> None:
        if self._progress is None:
            return
        task = self._file_tasks.get(event.local_path)
        if task is not None:
            self._progress.update(
                task,
                completed=event.bytes_done,
                total=event.bytes_total or None,
            )

    def _finish_file(self, local_path: str) -> None:
        if self._progress is None:
            return
        task = self._file_tasks.pop(local_path, None)
        if task is not None:
            self._progress.remove_task(task)

    def _on_end(self, event: SyncEventEnd) -> None:
        self._finish_file(event.local_path)

    def _on_error(self, event: SyncEventError) -> None:
        if self._progress is None:
            return
        if event.local_path in self._file_tasks:
            self._finish_file(event.local_path)
        self._progress.console.print(
            format_event(event), style="red", markup=False, highlight=False
        )

    def _on_message(self, event: "SyncEventSkip | SyncEventDelete") -> None:
        if self._progress is None:
            return
        self._progress.console.print(format_event(event), markup=False, highlight=False)

    def __enter__(self) -> "SyncProgressDisplay":
        """Enter context manager - start progress display."""
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeElapsedColumn(),
            console=self._console,
            refresh_per_second=4,
        )
        self._progress.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager - stop progress display."""
        with self._lock:
            if self._progress is not None:
                self._progress.__exit__(exc_type, exc_val, exc_tb)
                self._progress = None
                self._file_tasks.clear()


class PlainEventPrinter:
    """Prints one line per event, for --no-progress or non-terminal output."""

    def __init__(
        self, console: Optional[Console] = None, show_progress: bool = False
    ):
        self.console = console or Console()
        self.show_progress = show_progress
        self._lock = threading.Lock()

    def handle_event(self, event: SyncEvent) -> None:
        if event.kind == SyncEventKind.PROGRESS and not self.show_progress:
            return
        with self._lock:
            self.console.print(format_event(event), markup=False, highlight=False)
