"""
Mock components for testing profile_reset.

These stand in for the external mirror/protect primitives so backup and
restore can be exercised on temporary directories, with scripted failures.
"""

from .mock_mirror import MockMirror, RecordingProtect
from .tree_data import PRISTINE_PROFILE, write_tree, read_tree

__all__ = [
    'MockMirror',
    'RecordingProtect',
    'PRISTINE_PROFILE',
    'write_tree',
    'read_tree',
]
