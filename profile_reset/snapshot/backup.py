"""
BackupOrchestrator - replaces each requested user's snapshot with a fresh
mirror of the live profile.
"""

from datetime import date
from pathlib import Path
from typing import Callable, Iterable, Optional

from ..errors import MirrorError, ProfileNotFoundError, ProfileResetError
from ..locks import KeyedLocks
from ..paths import unique_usernames, validate_username
from ..policy.store import PolicyStore
from ..primitives import Mirror
from .models import OutcomeStatus, RunReport, UserOutcome
from .store import SnapshotStore


OutcomeCallback = Callable[[UserOutcome], None]


class BackupOrchestrator:
    """Takes per-user snapshots."""

    def __init__(
        self,
        snapshots: SnapshotStore,
        policies: PolicyStore,
        mirror: Mirror,
        profiles_root: Path,
        locks: Optional[KeyedLocks] = None,
        clock: Callable[[], date] = date.today,
    ):
        """
        Initialize backup orchestrator.

        Args:
            snapshots: Snapshot storage root
            policies: Policy records (default record created on first backup)
            mirror: Mirror primitive
            profiles_root: Parent directory of the live profiles
            locks: Per-user locks shared with restore
            clock: Returns today's date
        """
        self.snapshots = snapshots
        self.policies = policies
        self.mirror = mirror
        self.profiles_root = Path(profiles_root)
        self.locks = locks or policies.locks
        self.clock = clock

    def profile_path(self, username: str) -> Path:
        return self.profiles_root / validate_username(username)

    def run(
        self,
        users: Iterable[str],
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> RunReport:
        """
        Snapshot every requested user.

        The storage root is created (and protected) before any user is
        touched; failing that raises StorageRootError. After that, each
        user's problems are recorded in the report and the batch continues.
        """
        today = self.clock()
        report = RunReport(mode="backup", today=today)

        self.snapshots.ensure_root()

        for username in unique_usernames(users):
            try:
                outcome = self.backup_user(username, today)
            except ProfileResetError as e:
                outcome = UserOutcome.from_error(username, e, action="backup")
            report.add(outcome)
            if on_outcome:
                on_outcome(outcome)

        return report

    def backup_user(self, username: str, today: date) -> UserOutcome:
        """
        Replace one user's snapshot.

        Raises:
            InvalidUsernameError: Unsafe username
            ProfileNotFoundError: Live profile missing
            MirrorError: Removing the old snapshot or mirroring failed
            PolicyWriteError: Default policy could not be written
        """
        name = validate_username(username)
        profile = self.profile_path(name)
        if not profile.is_dir():
            raise ProfileNotFoundError(f"Profile directory not found: {profile}", username=name)

        target = self.snapshots.snapshot_path(name)
        with self.locks.hold(name):
            removed = self.snapshots.remove_snapshot(name)
            if not removed.success:
                raise MirrorError(f"Cannot remove old snapshot: {removed.error}", username=name)

            result = self.mirror.mirror(profile, target)
            if not result.success:
                raise MirrorError(f"Snapshot copy failed: {result.error}", username=name)

            policy_created = False
            if not self.policies.exists(name):
                self.policies.create_default(name, today=today)
                policy_created = True

        message = f"Snapshot written to {target}"
        if policy_created:
            message += " (default policy created)"
        return UserOutcome(
            username=name,
            status=OutcomeStatus.BACKED_UP,
            action="backup",
            message=message,
        )
