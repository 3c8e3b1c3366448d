"""
Error types for profile_reset.

Every per-user failure carries an ErrorKind so the orchestrators can report
it and move on to the next user. Only StorageRootError and ConfigError stop a
run before any per-user work starts.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Kinds of errors a run can report."""
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
    SNAPSHOT_NOT_FOUND = "SNAPSHOT_NOT_FOUND"
    INVALID_POLICY = "INVALID_POLICY"
    POLICY_NOT_FOUND = "POLICY_NOT_FOUND"
    INVALID_USERNAME = "INVALID_USERNAME"
    MIRROR_FAILURE = "MIRROR_FAILURE"
    PROFILE_ABSENT = "PROFILE_ABSENT"
    POLICY_WRITE = "POLICY_WRITE"
    STORAGE_ROOT = "STORAGE_ROOT"
    CONFIG = "CONFIG"


class ProfileResetError(Exception):
    """Base class for all profile_reset errors."""

    kind: ErrorKind = ErrorKind.CONFIG

    def __init__(self, message: str, username: Optional[str] = None):
        super().__init__(message)
        self.username = username


class ConfigError(ProfileResetError):
    """Configuration file missing, unreadable or invalid."""
    kind = ErrorKind.CONFIG


class StorageRootError(ProfileResetError):
    """The protected snapshot root could not be created or protected."""
    kind = ErrorKind.STORAGE_ROOT


class InvalidUsernameError(ProfileResetError):
    """Username is empty or would escape the storage root."""
    kind = ErrorKind.INVALID_USERNAME


class PolicyError(ProfileResetError):
    """Base class for policy record errors."""
    kind = ErrorKind.INVALID_POLICY


class InvalidPolicyError(PolicyError):
    """Policy record is malformed or missing required fields."""
    kind = ErrorKind.INVALID_POLICY


class PolicyNotFoundError(PolicyError):
    """No policy record exists for the user."""
    kind = ErrorKind.POLICY_NOT_FOUND


class PolicyWriteError(PolicyError):
    """Policy record could not be written."""
    kind = ErrorKind.POLICY_WRITE


class ProfileNotFoundError(ProfileResetError):
    """Live profile directory does not exist."""
    kind = ErrorKind.PROFILE_NOT_FOUND


class SnapshotNotFoundError(ProfileResetError):
    """No snapshot exists for the user."""
    kind = ErrorKind.SNAPSHOT_NOT_FOUND


class MirrorError(ProfileResetError):
    """A mirror or removal primitive failed."""
    kind = ErrorKind.MIRROR_FAILURE


class ProfileAbsentError(MirrorError):
    """
    Full restore removed the live profile but could not mirror the snapshot
    back in. The profile is left absent until the next successful restore.
    """
    kind = ErrorKind.PROFILE_ABSENT


# Kinds that leave the user untouched and are reported as warnings rather
# than failures.
WARNING_KINDS = frozenset({
    ErrorKind.PROFILE_NOT_FOUND,
    ErrorKind.SNAPSHOT_NOT_FOUND,
    ErrorKind.INVALID_POLICY,
    ErrorKind.POLICY_NOT_FOUND,
    ErrorKind.INVALID_USERNAME,
})
