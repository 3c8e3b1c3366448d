"""
RestoreOrchestrator - applies each user's policy at session start.

Per user:
    Start -> {SKIP | FULL_RESTORE | PARTIAL_CLEAN} -> End

Only a successful full restore advances lastClean. Every user is evaluated
from the policy on disk; nothing is carried over between users or runs.
"""

from datetime import date
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from ..errors import (
    InvalidPolicyError,
    MirrorError,
    ProfileAbsentError,
    ProfileNotFoundError,
    ProfileResetError,
    SnapshotNotFoundError,
)
from ..locks import KeyedLocks
from ..paths import (
    check_no_symlink_parents,
    resolve_inside,
    unique_usernames,
    validate_username,
)
from ..policy.evaluator import Action, decide
from ..policy.models import UserProfilePolicy
from ..policy.store import PolicyStore
from ..primitives import Mirror, remove_path
from .models import OutcomeStatus, RunReport, UserOutcome
from .store import SnapshotStore


OutcomeCallback = Callable[[UserOutcome], None]


class RestoreOrchestrator:
    """Restores live profiles from snapshots according to policy."""

    def __init__(
        self,
        snapshots: SnapshotStore,
        policies: PolicyStore,
        mirror: Mirror,
        profiles_root: Path,
        locks: Optional[KeyedLocks] = None,
        clock: Callable[[], date] = date.today,
    ):
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
        users: Optional[Iterable[str]] = None,
        force: bool = False,
        dry_run: bool = False,
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> RunReport:
        """
        Evaluate and apply policy for each user.

        Args:
            users: Users to process; None means every user with a policy
            force: Full restore regardless of schedule and skipUser
            dry_run: Decide and report only; nothing is removed or saved
            on_outcome: Called after each user finishes
        """
        today = self.clock()
        report = RunReport(mode="restore", today=today)

        if users is None:
            users = self.policies.list_known_users()

        for username in unique_usernames(users):
            try:
                outcome = self.restore_user(username, today, force=force, dry_run=dry_run)
            except ProfileResetError as e:
                outcome = UserOutcome.from_error(username, e, action="restore")
            report.add(outcome)
            if on_outcome:
                on_outcome(outcome)

        return report

    def restore_user(
        self,
        username: str,
        today: date,
        force: bool = False,
        dry_run: bool = False,
    ) -> UserOutcome:
        """
        Process one user.

        Raises:
            InvalidUsernameError, SnapshotNotFoundError, InvalidPolicyError,
            PolicyNotFoundError, ProfileNotFoundError: user left untouched
            MirrorError: a removal or mirror step failed
            ProfileAbsentError: profile removed but not restored
        """
        name = validate_username(username)
        if not self.snapshots.has_snapshot(name):
            raise SnapshotNotFoundError(
                f"No snapshot at {self.snapshots.snapshot_path(name)}", username=name
            )

        with self.locks.hold(name):
            policy = self.policies.load(name)
            action = decide(policy, force=force, today=today)

            if action == Action.SKIP:
                return UserOutcome(
                    username=name,
                    status=OutcomeStatus.SKIPPED,
                    action=action.value,
                    message="skipUser is set",
                )

            if dry_run:
                return self._plan(name, policy, action)

            if action == Action.FULL_RESTORE:
                return self._full_restore(name, policy, today)
            return self._partial_clean(name, policy)

    def _plan(self, name: str, policy: UserProfilePolicy, action: Action) -> UserOutcome:
        if action == Action.FULL_RESTORE:
            message = f"Would replace {self.profile_path(name)} with the snapshot"
            paths: List[str] = []
        else:
            paths = [p for p in policy.clean_always if self._snapshot_has(name, p)]
            message = f"Would clean {len(paths)} path(s)"
        return UserOutcome(
            username=name,
            status=OutcomeStatus.PLANNED,
            action=action.value,
            message=message,
            paths_cleaned=paths,
        )

    def _full_restore(self, name: str, policy: UserProfilePolicy, today: date) -> UserOutcome:
        profile = self.profile_path(name)
        snapshot = self.snapshots.snapshot_path(name)

        removed = remove_path(profile)
        if not removed.success:
            raise MirrorError(f"Cannot remove profile: {removed.error}", username=name)

        result = self.mirror.mirror(snapshot, profile)
        if not result.success:
            raise ProfileAbsentError(
                f"Profile {profile} was removed but the snapshot could not be "
                f"copied back: {result.error}",
                username=name,
            )

        policy.last_clean = today
        self.policies.save(name, policy)

        return UserOutcome(
            username=name,
            status=OutcomeStatus.RESTORED,
            action=Action.FULL_RESTORE.value,
            message=f"Profile restored from snapshot; lastClean set to {today.isoformat()}",
        )

    def _partial_clean(self, name: str, policy: UserProfilePolicy) -> UserOutcome:
        profile = self.profile_path(name)
        if not profile.is_dir():
            raise ProfileNotFoundError(f"Profile directory not found: {profile}", username=name)

        snapshot = self.snapshots.snapshot_path(name)
        cleaned: List[str] = []
        errors: List[str] = []

        for rel in policy.clean_always:
            src = resolve_inside(snapshot, rel)
            dst = resolve_inside(profile, rel)
            try:
                check_no_symlink_parents(snapshot, src)
                check_no_symlink_parents(profile, dst)
            except InvalidPolicyError as e:
                errors.append(f"{rel}: {e}")
                continue
            if not (src.exists() or src.is_symlink()):
                continue

            removed = remove_path(dst)
            if not removed.success:
                errors.append(f"{rel}: {removed.error}")
                continue
            result = self.mirror.mirror(src, dst)
            if not result.success:
                errors.append(f"{rel}: {result.error}")
                continue
            if rel not in cleaned:
                cleaned.append(rel)

        if errors:
            error = MirrorError("Partial clean failed for " + "; ".join(errors), username=name)
            outcome = UserOutcome.failure(name, error, action=Action.PARTIAL_CLEAN.value)
            outcome.paths_cleaned = cleaned
            return outcome

        return UserOutcome(
            username=name,
            status=OutcomeStatus.CLEANED,
            action=Action.PARTIAL_CLEAN.value,
            message=f"Cleaned {len(cleaned)} path(s)",
            paths_cleaned=cleaned,
        )

    def _snapshot_has(self, name: str, rel: str) -> bool:
        src = resolve_inside(self.snapshots.snapshot_path(name), rel)
        return src.exists() or src.is_symlink()
