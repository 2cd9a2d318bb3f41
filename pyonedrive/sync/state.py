"""Persistence of content fingerprints between sync runs.

After a sync, the fingerprint of every file known to match the remote
copy is recorded. On the next run a local file whose size matches and
whose recorded fingerprint equals the remote one is skipped without
being read and hashed again.
"""

import hashlib
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class SyncState:
    """Represents the state of a sync pair after its last sync."""

    local_path: str
    """Local directory path that was synced"""

    remote_path: str
    """Remote folder path that was synced"""

    fingerprints: dict[str, str] = field(default_factory=dict)
    """Name to QuickXorHash of files in sync after the last run"""

    last_sync: Optional[str] = None
    """ISO timestamp of last successful sync"""

    def to_dict(self) -> dict:
        """Convert state to dictionary for JSON serialization."""
        return {
            "local_path": self.local_path,
            "remote_path": self.remote_path,
            "fingerprints": dict(sorted(self.fingerprints.items())),
            "last_sync": self.last_sync,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SyncState":
        """Create SyncState from dictionary."""
        fingerprints = data.get("fingerprints") or {}
        if not isinstance(fingerprints, dict):
            raise ValueError("fingerprints must be an object")
        return cls(
            local_path=data.get("local_path", ""),
            remote_path=data.get("remote_path", ""),
            fingerprints={str(k): str(v) for k, v in fingerprints.items()},
            last_sync=data.get("last_sync"),
        )


class SyncStateManager:
    """Manages fingerprint index files, one per local/remote pair.

    Files live in the user's config directory and are keyed by a hash of
    the local and remote paths, so the synced directory itself stays
    untouched.
    """

    def __init__(self, state_dir: Optional[Path] = None):
        """Initialize state manager.

        Args:
            state_dir: Directory to store state files. Defaults to
                      ~/.config/pyonedrive/sync_state/
        """
        if state_dir is None:
            state_dir = Path.home() / ".config" / "pyonedrive" / "sync_state"
        self.state_dir = state_dir

    def _get_state_key(self, local_path: Path, remote_path: str) -> str:
        """Generate a unique key for a sync pair."""
        local_abs = str(local_path.resolve())
        combined = f"{local_abs}:{remote_path.strip('/')}"
        return hashlib.sha256(combined.encode()).hexdigest()[:16]

    def _get_state_file(self, local_path: Path, remote_path: str) -> Path:
        key = self._get_state_key(local_path, remote_path)
        return self.state_dir / f"{key}.json"

    def load_state(self, local_path: Path, remote_path: str) -> Optional[SyncState]:
        """Load sync state for a sync pair.

        Args:
            local_path: Local directory path
            remote_path: Remote folder path

        Returns:
            SyncState if found and readable, None otherwise
        """
        state_file = self._get_state_file(local_path, remote_path)

        if not state_file.exists():
            logger.debug(f"No sync state found at {state_file}")
            return None

        try:
            with open(state_file, encoding="utf-8") as f:
                data = json.load(f)
            state = SyncState.from_dict(data)
            logger.debug(
                f"Loaded {len(state.fingerprints)} fingerprints "
                f"from {state.last_sync}"
            )
            return state
        except (OSError, json.JSONDecodeError, ValueError, AttributeError) as e:
            logger.warning(f"Failed to load sync state: {e}")
            return None

    def load_fingerprints(self, local_path: Path, remote_path: str) -> dict[str, str]:
        """Return the recorded fingerprints of a pair ({} if none)."""
        state = self.load_state(local_path, remote_path)
        return dict(state.fingerprints) if state else {}

    def save_state(
        self,
        local_path: Path,
        remote_path: str,
        fingerprints: dict[str, str],
    ) -> None:
        """Save the fingerprint index of a sync pair.

        Failures are logged, not raised: the index is an optimisation.

        Args:
            local_path: Local directory path
            remote_path: Remote folder path
            fingerprints: Name to fingerprint of files in sync
        """
        state = SyncState(
            local_path=str(local_path.resolve()),
            remote_path=remote_path,
            fingerprints=fingerprints,
            last_sync=datetime.now().isoformat(),
        )

        state_file = self._get_state_file(local_path, remote_path)

        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            with open(state_file, "w", encoding="utf-8") as f:
                json.dump(state.to_dict(), f, indent=2)
            logger.debug(
                f"Saved {len(fingerprints)} fingerprints to {state_file}"
            )
        except OSError as e:
            logger.warning(f"Failed to save sync state: {e}")

    def clear_state(self, local_path: Path, remote_path: str) -> bool:
        """Clear sync state for a sync pair.

        Returns:
            True if state was cleared, False if no state existed
        """
        state_file = self._get_state_file(local_path, remote_path)

        if state_file.exists():
            state_file.unlink()
            logger.debug(f"Cleared sync state at {state_file}")
            return True
        return False
