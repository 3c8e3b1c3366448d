"""
SnapshotStore - paths and bookkeeping for the protected snapshot root.

Layout:
    <root>/
    ├── alice/          # mirror of alice's profile at last backup
    ├── alice.json      # alice's policy record
    ├── bob/
    └── bob.json
"""

from datetime import datetime
from pathlib import Path
from typing import Callable, List

from ..errors import StorageRootError
from ..paths import validate_username
from ..primitives import PrimitiveResult, protect_directory, remove_path
from ..policy.store import POLICY_SUFFIX
from .models import SnapshotInfo


class SnapshotStore:
    """Tracks which users have snapshots and where they live."""

    def __init__(
        self,
        root: Path,
        protect: Callable[[Path], PrimitiveResult] = protect_directory,
    ):
        """
        Initialize snapshot store.

        Args:
            root: Protected storage root
            protect: Primitive applied once when the root is first created
        """
        self.root = Path(root)
        self._protect = protect

    def snapshot_path(self, username: str) -> Path:
        """Get path to a user's snapshot subtree."""
        return self.root / validate_username(username)

    def policy_path(self, username: str) -> Path:
        return self.root / f"{validate_username(username)}{POLICY_SUFFIX}"

    def has_snapshot(self, username: str) -> bool:
        path = self.snapshot_path(username)
        return path.is_dir() and not path.is_symlink()

    def ensure_root(self) -> bool:
        """
        Create the storage root if missing and protect it.

        Returns:
            True if the root was created by this call

        Raises:
            StorageRootError: If the root cannot be created or protected
        """
        if self.root.is_dir():
            return False
        if self.root.exists():
            raise StorageRootError(f"Storage root exists but is not a directory: {self.root}")

        try:
            self.root.mkdir(parents=True)
        except OSError as e:
            raise StorageRootError(f"Cannot create storage root {self.root}: {e}")

        result = self._protect(self.root)
        if not result.success:
            raise StorageRootError(f"Cannot protect storage root {self.root}: {result.error}")
        return True

    def remove_snapshot(self, username: str) -> PrimitiveResult:
        """Remove a user's snapshot subtree (policy untouched)."""
        return remove_path(self.snapshot_path(username))

    def delete(self, username: str) -> PrimitiveResult:
        """Remove a user's snapshot and policy record together."""
        result = self.remove_snapshot(username)
        if not result.success:
            return result
        return remove_path(self.policy_path(username))

    def list_snapshots(self) -> List[SnapshotInfo]:
        """
        List every user with a snapshot directory or a policy record.

        Returns:
            SnapshotInfo sorted by username
        """
        if not self.root.is_dir():
            return []

        names = set()
        for path in self.root.iterdir():
            if path.name.startswith("."):
                continue
            if path.is_dir() and not path.is_symlink():
                names.add(path.name)
            elif path.is_file() and path.name.endswith(POLICY_SUFFIX):
                names.add(path.name[:-len(POLICY_SUFFIX)])

        infos = []
        for name in sorted(names):
            snap = self.root / name
            has_snapshot = snap.is_dir() and not snap.is_symlink()
            infos.append(SnapshotInfo(
                username=name,
                has_snapshot=has_snapshot,
                has_policy=(self.root / f"{name}{POLICY_SUFFIX}").is_file(),
                snapshot_mtime=(
                    datetime.fromtimestamp(snap.stat().st_mtime).isoformat(timespec="seconds")
                    if has_snapshot else None
                ),
            ))
        return infos
