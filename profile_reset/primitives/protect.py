"""
Protect primitive - restrict the snapshot root to its administrative owner.
"""

import os
import stat
from pathlib import Path
from typing import Optional

from .mirror import PrimitiveResult


ADMIN_UID = 0
ADMIN_GID = 0
PROTECTED_MODE = stat.S_IRWXU  # 0700


def protect_directory(path: Path, as_root: Optional[bool] = None) -> PrimitiveResult:
    """
    Make `path` accessible only to its owner; hand ownership to root when
    running as root.

    Hiding is done by naming: the default storage root starts with a dot.
    """
    operation = f"protect {path}"
    if as_root is None:
        as_root = hasattr(os, "geteuid") and os.geteuid() == 0

    if not path.is_dir():
        return PrimitiveResult.failure(operation, f"Not a directory: {path}")

    try:
        if as_root:
            os.chown(path, ADMIN_UID, ADMIN_GID)
        os.chmod(path, PROTECTED_MODE)
    except OSError as e:
        return PrimitiveResult.failure(operation, f"{type(e).__name__}: {e}")
    return PrimitiveResult.ok(operation)
