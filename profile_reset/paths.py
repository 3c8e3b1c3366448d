"""
Path safety helpers.

All usernames and policy subpaths pass through here before they are joined
onto the storage root or a live profile. Nothing is allowed to resolve
outside the directory it is joined onto.
"""

import os
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Iterable, List

from .errors import InvalidUsernameError, InvalidPolicyError


# Characters that would let a username name something other than a single
# directory entry under the storage root.
_FORBIDDEN_USERNAME_CHARS = set('/\\:*?"<>|\0')


def validate_username(username: str) -> str:
    """
    Check that a username is safe to use as a directory/file name.

    Returns:
        The stripped username.

    Raises:
        InvalidUsernameError: If the name is empty, '.'/'..', or contains
            path separators or other forbidden characters.
    """
    name = (username or "").strip()
    if not name:
        raise InvalidUsernameError("Username must not be empty", username=username)
    if name in (".", ".."):
        raise InvalidUsernameError(f"Username must not be {name!r}", username=username)
    if any(ch in _FORBIDDEN_USERNAME_CHARS for ch in name):
        raise InvalidUsernameError(
            f"Username contains invalid characters: {name!r}", username=username
        )
    return name


def unique_usernames(users: Iterable[str]) -> List[str]:
    """Sorted, de-duplicated names with surrounding whitespace removed."""
    return sorted({(u or "").strip() for u in users})


def normalize_relative_path(raw: str) -> str:
    """
    Normalize a policy subpath to a '/'-separated relative path.

    Both '/' and '\\' are accepted as separators. Empty components and '.'
    are dropped.

    Raises:
        InvalidPolicyError: If the path is empty, absolute, carries a drive,
            or contains a '..' component.
    """
    if not isinstance(raw, str):
        raise InvalidPolicyError(f"cleanAllways entry must be a string, got {type(raw).__name__}")

    text = raw.strip()
    if not text:
        raise InvalidPolicyError("cleanAllways entry must not be empty")

    if PurePosixPath(text).is_absolute() or text.startswith("\\"):
        raise InvalidPolicyError(f"cleanAllways entry must be relative: {raw!r}")
    win = PureWindowsPath(text)
    if win.drive or win.is_absolute():
        raise InvalidPolicyError(f"cleanAllways entry must be relative: {raw!r}")

    parts = [p for p in text.replace("\\", "/").split("/") if p not in ("", ".")]
    if not parts:
        raise InvalidPolicyError(f"cleanAllways entry names the profile root: {raw!r}")
    if ".." in parts:
        raise InvalidPolicyError(f"cleanAllways entry escapes the profile root: {raw!r}")

    return "/".join(parts)


def resolve_inside(root: Path, relative: str) -> Path:
    """
    Join a normalized relative path onto root, refusing anything that lands
    outside it.

    Symlinks are not followed; the check is lexical.
    """
    candidate = Path(os.path.normpath(root / normalize_relative_path(relative)))
    root_norm = Path(os.path.normpath(root))
    if candidate == root_norm or root_norm not in candidate.parents:
        raise InvalidPolicyError(f"Path {relative!r} resolves outside {root}")
    return candidate


def check_no_symlink_parents(root: Path, target: Path) -> None:
    """
    Refuse a target reached through a symlinked directory below root.

    Every directory between root (exclusive) and target (exclusive) must be
    a real directory, and target's parent must really live under root. The
    target itself may be a symlink; it is unlinked or copied as a link,
    never followed.

    Raises:
        InvalidPolicyError: If a parent component is a symlink or the
            parent resolves outside root.
    """
    root_norm = Path(os.path.normpath(root))
    current = root_norm
    for part in target.relative_to(root_norm).parts[:-1]:
        current = current / part
        if current.is_symlink():
            raise InvalidPolicyError(f"{current} is a symlink; refusing to act through it")

    real_root = os.path.realpath(root_norm)
    real_parent = os.path.realpath(target.parent)
    if real_parent != real_root and not real_parent.startswith(real_root + os.sep):
        raise InvalidPolicyError(f"{target} resolves outside {root}")
