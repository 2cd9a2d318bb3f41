"""Sync engine for pyonedrive - one-way mirror of a OneDrive folder."""

from .comparator import FileComparator, ReconcilePlan, SyncAction, SyncDecision
from .engine import SyncEngine, SyncResult
from .events import (
    EventSink,
    SyncEvent,
    SyncEventBegin,
    SyncEventDelete,
    SyncEventEnd,
    SyncEventError,
    SyncEventKind,
    SyncEventProgress,
    SyncEventSkip,
    dispatch_event,
    format_event,
)
from .filters import build_exclude_predicate
from .localfs import LocalFileSystem
from .operations import SyncOperations
from .protocols import (
    EntryProtocol,
    ExcludePredicate,
    LocalFSProtocol,
    RemoteStoreProtocol,
)
from .scanner import DirectoryScanner, LocalEntry, RemoteEntry
from .state import SyncState, SyncStateManager
from .transfer import TransferEngine, TransferResult

__all__ = [
    "SyncEngine",
    "SyncResult",
    "SyncOperations",
    "TransferEngine",
    "TransferResult",
    "DirectoryScanner",
    "LocalEntry",
    "RemoteEntry",
    "LocalFileSystem",
    "FileComparator",
    "ReconcilePlan",
    "SyncAction",
    "SyncDecision",
    "EventSink",
    "SyncEvent",
    "SyncEventKind",
    "SyncEventBegin",
    "SyncEventProgress",
    "SyncEventEnd",
    "SyncEventSkip",
    "SyncEventDelete",
    "SyncEventError",
    "dispatch_event",
    "format_event",
    "build_exclude_predicate",
    "EntryProtocol",
    "ExcludePredicate",
    "LocalFSProtocol",
    "RemoteStoreProtocol",
    "SyncState",
    "SyncStateManager",
]
