"""
Snapshot manager - high-level operations wired from a Config.
"""

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from ..config import Config
from ..errors import ErrorKind, ProfileResetError
from ..locks import KeyedLocks
from ..paths import unique_usernames, validate_username
from ..policy.evaluator import Action, days_until_due, decide
from ..policy.models import UserProfilePolicy
from ..policy.store import PolicyStore
from ..primitives import Mirror, PrimitiveResult, create_mirror, protect_directory
from .backup import BackupOrchestrator, OutcomeCallback
from .models import OutcomeStatus, RunReport, SnapshotInfo, UserOutcome
from .restore import RestoreOrchestrator
from .store import SnapshotStore


@dataclass
class UserStatus:
    """One row of `status` output."""
    info: SnapshotInfo
    policy: Optional[UserProfilePolicy] = None
    policy_error: Optional[str] = None
    decision: Optional[Action] = None
    days_until_due: Optional[int] = None


class SnapshotManager:
    """Entry point for backup, restore, status and forget."""

    def __init__(
        self,
        config: Config,
        mirror: Optional[Mirror] = None,
        protect: Callable[[Path], PrimitiveResult] = protect_directory,
        clock: Callable[[], date] = date.today,
    ):
        """
        Initialize snapshot manager.

        Args:
            config: Loaded configuration
            mirror: Mirror primitive (built from config.mirror if omitted)
            protect: Storage-root protection primitive
            clock: Returns today's date
        """
        self.config = config
        self.clock = clock
        self.locks = KeyedLocks()

        storage_root = Path(config.storage.root)
        self.snapshots = SnapshotStore(storage_root, protect=protect)
        self.policies = PolicyStore(
            storage_root,
            default_clean_after_days=config.policy.default_clean_after_days,
            default_clean_always=config.policy.default_clean_always,
            locks=self.locks,
        )
        self.mirror = mirror or create_mirror(
            tool=config.mirror.tool,
            rsync_path=config.mirror.rsync_path,
            extra_args=config.mirror.extra_args,
            timeout=config.mirror.timeout,
        )
        profiles_root = Path(config.profiles.root)

        self.backup_orchestrator = BackupOrchestrator(
            self.snapshots, self.policies, self.mirror, profiles_root,
            locks=self.locks, clock=clock,
        )
        self.restore_orchestrator = RestoreOrchestrator(
            self.snapshots, self.policies, self.mirror, profiles_root,
            locks=self.locks, clock=clock,
        )

    # =========================================================================
    # Core Operations
    # =========================================================================

    def backup(self, users: Iterable[str], on_outcome: Optional[OutcomeCallback] = None) -> RunReport:
        return self.backup_orchestrator.run(users, on_outcome=on_outcome)

    def restore(
        self,
        users: Optional[Iterable[str]] = None,
        force: bool = False,
        dry_run: bool = False,
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> RunReport:
        return self.restore_orchestrator.run(
            users, force=force, dry_run=dry_run, on_outcome=on_outcome
        )

    # =========================================================================
    # Query Operations
    # =========================================================================

    def status(self, users: Optional[Iterable[str]] = None) -> List[UserStatus]:
        """
        Snapshot/policy state and today's decision for each user.

        Args:
            users: Restrict to these users; None lists everything stored
        """
        today = self.clock()
        infos = self.snapshots.list_snapshots()
        if users is not None:
            wanted = set(users)
            known = {i.username for i in infos}
            infos = [i for i in infos if i.username in wanted]
            for name in sorted(wanted - known):
                infos.append(SnapshotInfo(username=name, has_snapshot=False, has_policy=False))

        rows = []
        for info in infos:
            row = UserStatus(info=info)
            try:
                policy = self.policies.load(info.username)
            except ProfileResetError as e:
                row.policy_error = str(e)
            else:
                row.policy = policy
                row.decision = decide(policy, force=False, today=today)
                row.days_until_due = days_until_due(policy, today)
            rows.append(row)
        return rows

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def forget(self, users: Iterable[str], on_outcome: Optional[OutcomeCallback] = None) -> RunReport:
        """Delete snapshot and policy record for each user."""
        report = RunReport(mode="forget", today=self.clock())
        for username in unique_usernames(users):
            try:
                name = validate_username(username)
                with self.locks.hold(name):
                    result = self.snapshots.delete(name)
                if result.success:
                    outcome = UserOutcome(
                        username=name,
                        status=OutcomeStatus.REMOVED,
                        action="forget",
                        message="Snapshot and policy removed",
                    )
                else:
                    outcome = UserOutcome(
                        username=name,
                        status=OutcomeStatus.FAILED,
                        action="forget",
                        message=result.error or "removal failed",
                        error_kind=ErrorKind.MIRROR_FAILURE,
                    )
            except ProfileResetError as e:
                outcome = UserOutcome.from_error(username, e, action="forget")
            report.add(outcome)
            if on_outcome:
                on_outcome(outcome)
        return report
