"""
Snapshot/Restore system for profile_reset.

- SnapshotStore: protected root holding one mirror per user
- BackupOrchestrator: replaces snapshots with fresh mirrors of live profiles
- RestoreOrchestrator: applies each user's policy (skip / full / partial)
- SnapshotManager: wires the above from a Config
"""

from .models import OutcomeStatus, UserOutcome, RunReport, SnapshotInfo
from .store import SnapshotStore
from .backup import BackupOrchestrator
from .restore import RestoreOrchestrator
from .manager import SnapshotManager, UserStatus

__all__ = [
    'OutcomeStatus',
    'UserOutcome',
    'RunReport',
    'SnapshotInfo',
    'SnapshotStore',
    'BackupOrchestrator',
    'RestoreOrchestrator',
    'SnapshotManager',
    'UserStatus',
]
