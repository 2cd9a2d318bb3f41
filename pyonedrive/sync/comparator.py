"""Reconciliation of a local directory against a remote folder."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

from ..quickxor import hash_stream
from .scanner import LocalEntry, RemoteEntry

if TYPE_CHECKING:
    from .protocols import ExcludePredicate, LocalFSProtocol

logger = logging.getLogger(__name__)


class SyncAction(str, Enum):
    """Actions that can be taken during sync."""

    SKIP = "skip"
    """Local file already matches the remote file"""

    FETCH = "fetch"
    """Download remote file to local"""

    DELETE_LOCAL = "delete_local"
    """Delete local entry that no longer exists remotely"""

    ERROR = "error"
    """Entry cannot be synced (file/directory mismatch)"""


@dataclass
class SyncDecision:
    """Represents a decision about how to sync one name."""

    action: SyncAction
    """Action to take"""

    name: str
    """Entry name within the synced folder"""

    reason: str
    """Human-readable reason for this decision"""

    local_entry: Optional[LocalEntry] = None
    """Local entry (if one exists)"""

    remote_entry: Optional[RemoteEntry] = None
    """Remote entry (if one exists)"""


@dataclass
class ReconcilePlan:
    """Decisions of one reconciliation, partitioned by action."""

    fetch: list[SyncDecision] = field(default_factory=list)
    skip: list[SyncDecision] = field(default_factory=list)
    errors: list[SyncDecision] = field(default_factory=list)
    delete: list[SyncDecision] = field(default_factory=list)

    def add(self, decision: SyncDecision) -> None:
        bucket = {
            SyncAction.FETCH: self.fetch,
            SyncAction.SKIP: self.skip,
            SyncAction.ERROR: self.errors,
            SyncAction.DELETE_LOCAL: self.delete,
        }[decision.action]
        bucket.append(decision)

    @property
    def decisions(self) -> list[SyncDecision]:
        return self.skip + self.fetch + self.errors + self.delete


class FileComparator:
    """Decides per entry whether to skip, fetch, delete or report an error."""

    def __init__(self, fs: "LocalFSProtocol", chunk_size: int = 64 * 1024):
        """Initialize file comparator.

        Args:
            fs: Local filesystem, used to hash local files
            chunk_size: Read size when hashing
        """
        self.fs = fs
        self.chunk_size = chunk_size

    def reconcile(
        self,
        local_entries: dict[str, LocalEntry],
        remote_entries: Iterable[RemoteEntry],
        exclude: Optional["ExcludePredicate"] = None,
        known_fingerprints: Optional[Mapping[str, str]] = None,
    ) -> ReconcilePlan:
        """Compare the remote folder against the local directory.

        ``local_entries`` is consumed: every name matched by a remote entry
        is removed, so afterwards it holds only local-only entries.

        Args:
            local_entries: Local inventory keyed by name (mutated)
            remote_entries: Remote inventory
            exclude: Predicate for entries outside the sync scope
            known_fingerprints: Fingerprints recorded by a previous sync,
                used to skip hashing files that are known to be current

        Returns:
            The reconciliation plan
        """
        plan = ReconcilePlan()
        known = known_fingerprints or {}

        for remote in remote_entries:
            local = local_entries.pop(remote.name, None)
            if exclude is not None and exclude(remote):
                continue
            plan.add(self._compare_single(remote, local, known.get(remote.name)))

        for local in local_entries.values():
            if exclude is not None and exclude(local):
                continue
            plan.add(
                SyncDecision(
                    action=SyncAction.DELETE_LOCAL,
                    name=local.name,
                    reason="Not present remotely",
                    local_entry=local,
                )
            )

        logger.debug(
            "Reconciled: %d fetch, %d skip, %d error, %d delete",
            len(plan.fetch),
            len(plan.skip),
            len(plan.errors),
            len(plan.delete),
        )
        return plan

    def _compare_single(
        self,
        remote: RemoteEntry,
        local: Optional[LocalEntry],
        known_fingerprint: Optional[str],
    ) -> SyncDecision:
        """Decide the action for one remote entry.

        Args:
            remote: Remote entry
            local: Local entry with the same name, if any
            known_fingerprint: Previously recorded fingerprint for the name

        Returns:
            SyncDecision for this entry
        """

        def decide(action: SyncAction, reason: str) -> SyncDecision:
            return SyncDecision(
                action=action,
                name=remote.name,
                reason=reason,
                local_entry=local,
                remote_entry=remote,
            )

        if remote.is_directory:
            return decide(SyncAction.ERROR, "Remote item is a directory")
        if local is None:
            return decide(SyncAction.FETCH, "New remote file")
        if local.is_directory:
            return decide(SyncAction.ERROR, "Local item is a directory")
        if local.size != remote.size:
            return decide(
                SyncAction.FETCH,
                f"Size differs (local {local.size}, remote {remote.size})",
            )
        if not remote.fingerprint:
            return decide(SyncAction.FETCH, "Remote file has no content hash")
        if known_fingerprint is not None and known_fingerprint == remote.fingerprint:
            return decide(SyncAction.SKIP, "Fingerprint recorded by previous sync")

        try:
            with self.fs.open_read(local.path) as f:
                local_fingerprint = hash_stream(f, self.chunk_size)
        except OSError as e:
            logger.warning(f"Could not hash {local.path}, downloading again: {e}")
            return decide(SyncAction.FETCH, f"Local file unreadable: {e}")

        if local_fingerprint == remote.fingerprint:
            return decide(SyncAction.SKIP, "Content hash matches")
        return decide(SyncAction.FETCH, "Content hash differs")
