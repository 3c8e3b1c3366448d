"""
External collaborators: directory mirroring and storage-root protection.
"""

from .mirror import (
    PrimitiveResult,
    Mirror,
    RsyncMirror,
    CopyTreeMirror,
    create_mirror,
    remove_path,
)
from .protect import protect_directory

__all__ = [
    'PrimitiveResult',
    'Mirror',
    'RsyncMirror',
    'CopyTreeMirror',
    'create_mirror',
    'remove_path',
    'protect_directory',
]
