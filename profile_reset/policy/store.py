"""
PolicyStore - loads and persists per-user policy records.

Layout: one JSON file per user, `<root>/<username>.json`, next to the
user's snapshot directory.
"""

import json
import os
import tempfile
from datetime import date
from pathlib import Path
from typing import List, Optional, Set

from ..errors import InvalidPolicyError, PolicyNotFoundError, PolicyWriteError
from ..locks import KeyedLocks
from ..paths import validate_username
from .models import UserProfilePolicy


POLICY_SUFFIX = ".json"


class PolicyStore:
    """Durable per-user policy records."""

    def __init__(
        self,
        root: Path,
        default_clean_after_days: int = 1,
        default_clean_always: Optional[List[str]] = None,
        locks: Optional[KeyedLocks] = None,
    ):
        """
        Initialize policy store.

        Args:
            root: Snapshot storage root holding the policy files
            default_clean_after_days: cleanAfterDays for new records
            default_clean_always: cleanAllways for new records
            locks: Shared per-user lock registry
        """
        self.root = Path(root)
        self.default_clean_after_days = default_clean_after_days
        self.default_clean_always = list(default_clean_always or [])
        self.locks = locks or KeyedLocks()

    def policy_path(self, username: str) -> Path:
        """Get path to a user's policy file."""
        return self.root / f"{validate_username(username)}{POLICY_SUFFIX}"

    def exists(self, username: str) -> bool:
        return self.policy_path(username).is_file()

    def load(self, username: str) -> UserProfilePolicy:
        """
        Read and validate a user's policy.

        Raises:
            PolicyNotFoundError: No record for the user
            InvalidPolicyError: Record is malformed
        """
        path = self.policy_path(username)
        with self.locks.hold(username):
            if not path.is_file():
                raise PolicyNotFoundError(f"No policy record at {path}", username=username)
            try:
                with open(path, encoding="utf-8") as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise InvalidPolicyError(f"{path.name}: not valid JSON ({e})", username=username)
            except UnicodeDecodeError:
                raise InvalidPolicyError(f"{path.name}: not UTF-8 text", username=username)
            except OSError as e:
                raise InvalidPolicyError(f"{path.name}: cannot read ({e})", username=username)

        try:
            return UserProfilePolicy.from_dict(data)
        except InvalidPolicyError as e:
            raise InvalidPolicyError(f"{path.name}: {e}", username=username)

    def save(self, username: str, policy: UserProfilePolicy) -> Path:
        """
        Write a user's policy, replacing any previous version.

        The record is written to a temporary sibling and renamed into place,
        so an interrupted write leaves the previous record intact.
        """
        path = self.policy_path(username)
        payload = json.dumps(policy.to_dict(), indent=2) + "\n"

        with self.locks.hold(username):
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
                )
            except OSError as e:
                raise PolicyWriteError(f"Cannot write {path}: {e}", username=username)

            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, path)
            except OSError as e:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise PolicyWriteError(f"Cannot write {path}: {e}", username=username)
        return path

    def create_default(self, username: str, today: Optional[date] = None) -> UserProfilePolicy:
        """Write the default policy for a user that has none yet."""
        policy = UserProfilePolicy.default(
            today=today or date.today(),
            clean_after_days=self.default_clean_after_days,
            clean_always=self.default_clean_always,
        )
        self.save(username, policy)
        return policy

    def delete(self, username: str) -> bool:
        """Remove a user's policy record. Returns False if there was none."""
        path = self.policy_path(username)
        with self.locks.hold(username):
            if path.is_file():
                path.unlink()
                return True
        return False

    def list_known_users(self) -> Set[str]:
        """Usernames that have a policy record."""
        if not self.root.is_dir():
            return set()
        return {
            p.name[:-len(POLICY_SUFFIX)]
            for p in self.root.glob(f"*{POLICY_SUFFIX}")
            if p.is_file() and not p.name.startswith(".")
        }
