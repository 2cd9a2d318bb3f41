"""Lifecycle events emitted while a folder is synced.

Events are delivered to a caller supplied sink, possibly from several
worker threads at once. For a single file the order is always
``BEGIN -> PROGRESS* -> END`` or ``BEGIN -> ERROR``; events of different
files interleave freely.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Callable, ClassVar, Optional, TypeVar, Union


class SyncEventKind(str, Enum):
    """Kinds of sync events."""

    BEGIN = "begin"
    """A transfer started"""

    PROGRESS = "progress"
    """Bytes of a running transfer were written"""

    END = "end"
    """A transfer finished"""

    SKIP = "skip"
    """Local file is already up to date"""

    DELETE = "delete"
    """Local file was removed because it no longer exists remotely"""

    ERROR = "error"
    """An item could not be synced"""


@dataclass(frozen=True)
class SyncEventBegin:
    kind: ClassVar[SyncEventKind] = SyncEventKind.BEGIN

    local_path: str
    remote_path: Optional[str] = None
    is_upload: bool = False

    def __str__(self) -> str:
        if self.is_upload:
            return f'uploading "{self.local_path}"'
        return f'downloading "{self.remote_path}"'


@dataclass(frozen=True)
class SyncEventProgress:
    kind: ClassVar[SyncEventKind] = SyncEventKind.PROGRESS

    local_path: str
    remote_path: Optional[str] = None
    is_upload: bool = False
    bytes_done: int = 0
    bytes_total: int = 0

    def __str__(self) -> str:
        action = "uploaded" if self.is_upload else "downloaded"
        name = self.local_path if self.is_upload else self.remote_path
        return f'{action} {self.bytes_done}/{self.bytes_total} bytes of "{name}"'


@dataclass(frozen=True)
class SyncEventEnd:
    kind: ClassVar[SyncEventKind] = SyncEventKind.END

    local_path: str
    remote_path: Optional[str] = None
    is_upload: bool = False
    success: bool = True

    def __str__(self) -> str:
        action = "upload" if self.is_upload else "download"
        name = self.local_path if self.is_upload else self.remote_path
        status = "finished" if self.success else "failed"
        return f'{action} of "{name}" {status}'


@dataclass(frozen=True)
class SyncEventSkip:
    kind: ClassVar[SyncEventKind] = SyncEventKind.SKIP

    local_path: str
    remote_path: Optional[str] = None

    def __str__(self) -> str:
        return f'skipping "{self.remote_path}", local file up to date'


@dataclass(frozen=True)
class SyncEventDelete:
    kind: ClassVar[SyncEventKind] = SyncEventKind.DELETE

    local_path: str
    remote_path: Optional[str] = None

    def __str__(self) -> str:
        return f'deleted "{self.local_path}"'


@dataclass(frozen=True)
class SyncEventError:
    kind: ClassVar[SyncEventKind] = SyncEventKind.ERROR

    local_path: str
    remote_path: Optional[str] = None
    error: Optional[BaseException] = None

    def __str__(self) -> str:
        name = self.remote_path or self.local_path
        return f'error syncing "{name}": {self.error}'


SyncEvent = Union[
    SyncEventBegin,
    SyncEventProgress,
    SyncEventEnd,
    SyncEventSkip,
    SyncEventDelete,
    SyncEventError,
]

EventSink = Callable[[SyncEvent], None]

T = TypeVar("T")


def check_handlers(handlers: Mapping[SyncEventKind, object]) -> None:
    """Raise ValueError unless ``handlers`` covers every event kind."""
    missing = [kind.value for kind in SyncEventKind if kind not in handlers]
    if missing:
        raise ValueError(f"No handler for event kind(s): {', '.join(missing)}")


def dispatch_event(
    event: SyncEvent, handlers: Mapping[SyncEventKind, Callable[..., T]]
) -> T:
    """Call the handler registered for the event's kind.

    The mapping must handle every kind, so that consumers fail loudly
    when a new kind is introduced instead of dropping it.

    Args:
        event: Event to dispatch
        handlers: Handler per event kind, called with the event

    Returns:
        Whatever the handler returns

    Raises:
        ValueError: If a kind has no handler
    """
    check_handlers(handlers)
    return handlers[event.kind](event)


_PLAIN_FORMATTERS: dict[SyncEventKind, Callable[..., str]] = {
    SyncEventKind.BEGIN: lambda e: f"↓ {e}",
    SyncEventKind.PROGRESS: lambda e: f"  {e}",
    SyncEventKind.END: lambda e: f"{'✓' if e.success else '✗'} {e}",
    SyncEventKind.SKIP: lambda e: f"= {e}",
    SyncEventKind.DELETE: lambda e: f"✗ {e}",
    SyncEventKind.ERROR: lambda e: f"⚠ {e}",
}


def format_event(event: SyncEvent) -> str:
    """Return a one line, human readable description of an event."""
    return dispatch_event(event, _PLAIN_FORMATTERS)
