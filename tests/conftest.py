"""
Pytest configuration and shared fixtures for profile_reset tests.
"""

import sys
from datetime import date
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from profile_reset.config import Config
from profile_reset.policy.models import UserProfilePolicy
from profile_reset.snapshot import SnapshotManager

from mocks import MockMirror, RecordingProtect, PRISTINE_PROFILE, write_tree


TODAY = date(2024, 1, 3)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def storage_root(tmp_path):
    return tmp_path / "store" / ".profile_reset"


@pytest.fixture
def profiles_root(tmp_path):
    root = tmp_path / "home"
    root.mkdir()
    return root


@pytest.fixture
def config(storage_root, profiles_root):
    cfg = Config()
    cfg.storage.root = str(storage_root)
    cfg.profiles.root = str(profiles_root)
    cfg.mirror.tool = "copytree"
    cfg.policy.default_clean_always = [".cache"]
    return cfg


@pytest.fixture
def mirror():
    return MockMirror()


@pytest.fixture
def protect():
    return RecordingProtect()


@pytest.fixture
def manager(config, mirror, protect, today):
    return SnapshotManager(config, mirror=mirror, protect=protect, clock=lambda: today)


@pytest.fixture
def make_profile(profiles_root):
    """Create a live profile for a user from a tree description."""
    def _make(username, tree=None):
        return write_tree(profiles_root / username, dict(tree or PRISTINE_PROFILE))
    return _make


@pytest.fixture
def backed_up(manager, make_profile):
    """Back up the given users with the pristine profile; returns the manager."""
    def _backup(*usernames):
        for name in usernames:
            make_profile(name)
        report = manager.backup(usernames)
        assert not report.has_failures
        return manager
    return _backup


@pytest.fixture
def policy_factory():
    def _policy(clean_after_days=1, skip_user=False, clean_always=None, last_clean=date(2024, 1, 1)):
        return UserProfilePolicy(
            clean_after_days=clean_after_days,
            last_clean=last_clean,
            skip_user=skip_user,
            clean_always=list(clean_always if clean_always is not None else ["cache"]),
        )
    return _policy
