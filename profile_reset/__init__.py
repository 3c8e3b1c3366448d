"""
profile_reset - Per-user profile snapshots with policy-driven restore

Captures a pristine copy of each managed user's profile and, at session
start, either skips the user, restores the whole profile from the snapshot,
or resets only the user's "always clean" paths, according to a per-user
policy and an elapsed-day schedule.

Usage:
    # As a module
    python -m profile_reset backup --users alice,bob
    python -m profile_reset restore

    # Programmatically
    from profile_reset import Config, SnapshotManager

    manager = SnapshotManager(Config.load())
    report = manager.restore(force=False)
"""

__version__ = "1.0.0"

# Main exports
from .config import Config
from .errors import (
    ErrorKind,
    ProfileResetError,
    InvalidPolicyError,
    PolicyNotFoundError,
    MirrorError,
    ProfileAbsentError,
    StorageRootError,
)
from .policy import UserProfilePolicy, PolicyStore, Action, decide
from .snapshot import (
    SnapshotStore,
    BackupOrchestrator,
    RestoreOrchestrator,
    SnapshotManager,
    RunReport,
    UserOutcome,
    OutcomeStatus,
)

__all__ = [
    # Version
    "__version__",
    # Config
    "Config",
    # Errors
    "ErrorKind",
    "ProfileResetError",
    "InvalidPolicyError",
    "PolicyNotFoundError",
    "MirrorError",
    "ProfileAbsentError",
    "StorageRootError",
    # Policy
    "UserProfilePolicy",
    "PolicyStore",
    "Action",
    "decide",
    # Snapshots
    "SnapshotStore",
    "BackupOrchestrator",
    "RestoreOrchestrator",
    "SnapshotManager",
    "RunReport",
    "UserOutcome",
    "OutcomeStatus",
]
