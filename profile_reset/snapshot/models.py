"""
Data models for backup/restore runs.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional

from ..errors import WARNING_KINDS, ErrorKind, ProfileResetError


class OutcomeStatus(str, Enum):
    """How processing of one user ended."""
    BACKED_UP = "backed_up"
    RESTORED = "restored"
    CLEANED = "cleaned"
    SKIPPED = "skipped"
    PLANNED = "planned"      # dry run
    REMOVED = "removed"      # forget
    WARNING = "warning"      # user skipped because of a missing or bad input
    FAILED = "failed"


@dataclass
class UserOutcome:
    """Result of processing one user."""
    username: str
    status: OutcomeStatus
    action: Optional[str] = None
    message: str = ""
    error_kind: Optional[ErrorKind] = None
    paths_cleaned: List[str] = field(default_factory=list)

    @classmethod
    def warning(cls, username: str, error: ProfileResetError, action: Optional[str] = None) -> 'UserOutcome':
        return cls(
            username=username,
            status=OutcomeStatus.WARNING,
            action=action,
            message=str(error),
            error_kind=error.kind,
        )

    @classmethod
    def failure(cls, username: str, error: ProfileResetError, action: Optional[str] = None) -> 'UserOutcome':
        """Create a failure outcome."""
        return cls(
            username=username,
            status=OutcomeStatus.FAILED,
            action=action,
            message=str(error),
            error_kind=error.kind,
        )

    @classmethod
    def from_error(cls, username: str, error: ProfileResetError, action: Optional[str] = None) -> 'UserOutcome':
        """Warning for kinds that leave the user untouched, failure otherwise."""
        if error.kind in WARNING_KINDS:
            return cls.warning(username, error, action=action)
        return cls.failure(username, error, action=action)

    @property
    def failed(self) -> bool:
        return self.status == OutcomeStatus.FAILED


@dataclass
class RunReport:
    """All per-user outcomes of one backup or restore run."""
    mode: str
    today: date
    outcomes: List[UserOutcome] = field(default_factory=list)
    started_at: str = field(default_factory=lambda: datetime.now().isoformat(timespec="seconds"))

    def add(self, outcome: UserOutcome) -> UserOutcome:
        self.outcomes.append(outcome)
        return outcome

    def get(self, username: str) -> Optional[UserOutcome]:
        for outcome in self.outcomes:
            if outcome.username == username:
                return outcome
        return None

    @property
    def failures(self) -> List[UserOutcome]:
        return [o for o in self.outcomes if o.failed]

    @property
    def warnings(self) -> List[UserOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.WARNING]

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    def counts(self) -> Dict[str, int]:
        """Number of users per status."""
        result: Dict[str, int] = {}
        for outcome in self.outcomes:
            result[outcome.status.value] = result.get(outcome.status.value, 0) + 1
        return result

    @property
    def exit_code(self) -> int:
        """0 unless some user ended in a failure."""
        return 1 if self.has_failures else 0


@dataclass
class SnapshotInfo:
    """Summary info for listing managed users."""
    username: str
    has_snapshot: bool
    has_policy: bool
    snapshot_mtime: Optional[str] = None
