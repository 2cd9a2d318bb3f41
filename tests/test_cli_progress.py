"""Tests for the CLI event displays."""

import io

from rich.console import Console

from pyonedrive.cli_progress import PlainEventPrinter, SyncProgressDisplay
from pyonedrive.sync.events import (
    SyncEventBegin,
    SyncEventDelete,
    SyncEventEnd,
    SyncEventError,
    SyncEventProgress,
    SyncEventSkip,
)


def make_console():
    return Console(file=io.StringIO(), width=200)


class TestSyncProgressDisplay:
    """Tests for SyncProgressDisplay."""

    def test_tracks_running_downloads(self):
        console = make_console()
        with SyncProgressDisplay(console=console) as display:
            display.handle_event(SyncEventBegin(local_path="/l/a", remote_path="M/a"))
            assert "/l/a" in display._file_tasks
            display.handle_event(
                SyncEventProgress(
                    local_path="/l/a", remote_path="M/a", bytes_done=5, bytes_total=10
                )
            )
            display.handle_event(SyncEventEnd(local_path="/l/a", remote_path="M/a"))
            assert display._file_tasks == {}

    def test_error_removes_task_and_prints(self):
        console = make_console()
        with SyncProgressDisplay(console=console) as display:
            display.handle_event(SyncEventBegin(local_path="/l/a", remote_path="M/a"))
            display.handle_event(
                SyncEventError(
                    local_path="/l/a", remote_path="M/a", error=OSError("disk full")
                )
            )
            display.handle_event(SyncEventSkip(local_path="/l/b", remote_path="M/b"))
            display.handle_event(SyncEventDelete(local_path="/l/c"))
            assert display._file_tasks == {}
        output = console.file.getvalue()
        assert "disk full" in output
        assert 'skipping "M/b"' in output
        assert 'deleted "/l/c"' in output

    def test_events_outside_context_ignored(self):
        display = SyncProgressDisplay(console=make_console())
        display.handle_event(SyncEventBegin(local_path="/l/a", remote_path="M/a"))
        assert display._file_tasks == {}

    def test_handlers_outside_context_are_noops(self):
        console = make_console()
        display = SyncProgressDisplay(console=console)
        display._on_begin(SyncEventBegin(local_path="/l/a", remote_path="M/a"))
        display._on_error(
            SyncEventError(local_path="/l/a", remote_path="M/a", error=OSError("x"))
        )
        display._on_message(SyncEventDelete(local_path="/l/c"))
        assert display._file_tasks == {}
        assert console.file.getvalue() == ""


class TestPlainEventPrinter:
    """Tests for PlainEventPrinter."""

    def test_prints_one_line_per_event(self):
        console = make_console()
        printer = PlainEventPrinter(console=console)
        printer.handle_event(SyncEventBegin(local_path="/l/a", remote_path="M/a"))
        printer.handle_event(
            SyncEventProgress(local_path="/l/a", remote_path="M/a", bytes_done=1)
        )
        printer.handle_event(SyncEventEnd(local_path="/l/a", remote_path="M/a"))
        lines = console.file.getvalue().splitlines()
        assert lines == ['↓ downloading "M/a"', '✓ download of "M/a" finished']

    def test_progress_shown_on_request(self):
        console = make_console()
        printer = PlainEventPrinter(console=console, show_progress=True)
        printer.handle_event(
            SyncEventProgress(
                local_path="/l/a", remote_path="M/a", bytes_done=1, bytes_total=2
            )
        )
        assert "downloaded 1/2 bytes" in console.file.getvalue()
