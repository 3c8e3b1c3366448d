"""
PolicyEvaluator - decides what a restore run does for one user.

Rules, in order:
1. not forced and skipUser            -> SKIP
2. forced, cleanAfterDays == 0, or
   whole days since lastClean >= cleanAfterDays -> FULL_RESTORE
3. otherwise                          -> PARTIAL_CLEAN

Invalid policies never get here; they are rejected when loaded.
"""

from datetime import date
from enum import Enum

from .models import UserProfilePolicy


class Action(str, Enum):
    """Restore decision for one user."""
    SKIP = "skip"
    FULL_RESTORE = "full_restore"
    PARTIAL_CLEAN = "partial_clean"


def elapsed_days(policy: UserProfilePolicy, today: date) -> int:
    """Calendar days between lastClean and today (negative if lastClean is ahead)."""
    return (today - policy.last_clean).days


def decide(policy: UserProfilePolicy, force: bool, today: date) -> Action:
    """Pure decision function; no I/O."""
    if not force and policy.skip_user:
        return Action.SKIP

    if force or policy.clean_after_days == 0:
        return Action.FULL_RESTORE

    if elapsed_days(policy, today) >= policy.clean_after_days:
        return Action.FULL_RESTORE

    return Action.PARTIAL_CLEAN


def days_until_due(policy: UserProfilePolicy, today: date) -> int:
    """Days left before a full restore triggers on its own (0 = due now)."""
    if policy.clean_after_days == 0:
        return 0
    return max(0, policy.clean_after_days - elapsed_days(policy, today))
