"""
Mirror primitives - make a destination an exact copy of a source.

Two implementations share one contract:
- RsyncMirror: `rsync -a --delete` (preserves owner/group/mode when run
  as root, copies symlinks as symlinks)
- CopyTreeMirror: pure Python walk with shutil, for hosts without rsync

Every call returns a PrimitiveResult instead of raising, so the caller
decides how a failure is reported.
"""

import os
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Sequence


@dataclass
class PrimitiveResult:
    """Outcome of one external operation."""
    success: bool
    operation: str = ""
    returncode: Optional[int] = None
    error: Optional[str] = None
    command: List[str] = field(default_factory=list)

    @classmethod
    def ok(cls, operation: str, command: Optional[List[str]] = None) -> 'PrimitiveResult':
        return cls(success=True, operation=operation, returncode=0, command=command or [])

    @classmethod
    def failure(
        cls,
        operation: str,
        error: str,
        returncode: Optional[int] = None,
        command: Optional[List[str]] = None,
    ) -> 'PrimitiveResult':
        """Create a failure result."""
        return cls(
            success=False,
            operation=operation,
            returncode=returncode,
            error=error,
            command=command or [],
        )

    def __bool__(self) -> bool:
        return self.success


class Mirror(Protocol):
    """Mirror contract used by the orchestrators."""

    def mirror(self, src: Path, dst: Path) -> PrimitiveResult:
        ...


def remove_path(path: Path) -> PrimitiveResult:
    """
    Remove a file, symlink or directory tree. Symlinks are unlinked, never
    followed. A missing path counts as success.
    """
    operation = f"remove {path}"
    try:
        if path.is_symlink() or (path.exists() and not path.is_dir()):
            path.unlink()
        elif path.is_dir():
            shutil.rmtree(path)
    except OSError as e:
        return PrimitiveResult.failure(operation, f"{type(e).__name__}: {e}")
    return PrimitiveResult.ok(operation)


class RsyncMirror:
    """Mirror via rsync."""

    BASE_ARGS = ["-a", "--delete", "--numeric-ids"]

    def __init__(
        self,
        rsync_path: str = "rsync",
        extra_args: Optional[Sequence[str]] = None,
        timeout: Optional[int] = None,
    ):
        self.rsync_path = rsync_path
        self.extra_args = list(extra_args or [])
        self.timeout = timeout

    def build_command(self, src: Path, dst: Path) -> List[str]:
        """Build the rsync argv. Directories get trailing slashes so rsync
        copies contents rather than nesting src inside dst."""
        cmd = [self.rsync_path] + self.BASE_ARGS + self.extra_args
        if src.is_dir() and not src.is_symlink():
            cmd += [f"{src}/", f"{dst}/"]
        else:
            cmd += [str(src), str(dst)]
        return cmd

    def mirror(self, src: Path, dst: Path) -> PrimitiveResult:
        operation = f"mirror {src} -> {dst}"
        if not os.path.lexists(src):
            return PrimitiveResult.failure(operation, f"Source does not exist: {src}")

        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return PrimitiveResult.failure(operation, f"Cannot create {dst.parent}: {e}")

        cmd = self.build_command(src, dst)
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            return PrimitiveResult.failure(
                operation, f"rsync timed out after {self.timeout}s", command=cmd
            )
        except OSError as e:
            return PrimitiveResult.failure(operation, f"Cannot run rsync: {e}", command=cmd)

        if result.returncode != 0:
            stderr = (result.stderr or "").strip().splitlines()
            detail = stderr[-1] if stderr else "no output"
            return PrimitiveResult.failure(
                operation,
                f"rsync exited {result.returncode}: {detail}",
                returncode=result.returncode,
                command=cmd,
            )
        return PrimitiveResult.ok(operation, command=cmd)


class CopyTreeMirror:
    """Mirror with shutil; ownership is copied when running as root."""

    def __init__(self, preserve_owner: Optional[bool] = None):
        if preserve_owner is None:
            preserve_owner = hasattr(os, "geteuid") and os.geteuid() == 0
        self.preserve_owner = preserve_owner

    def mirror(self, src: Path, dst: Path) -> PrimitiveResult:
        operation = f"mirror {src} -> {dst}"
        if not os.path.lexists(src):
            return PrimitiveResult.failure(operation, f"Source does not exist: {src}")
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            self._mirror_entry(src, dst)
        except (OSError, shutil.Error) as e:
            return PrimitiveResult.failure(operation, f"{type(e).__name__}: {e}")
        return PrimitiveResult.ok(operation)

    def _mirror_entry(self, src: Path, dst: Path) -> None:
        if src.is_symlink():
            self._replace_with_symlink(src, dst)
        elif src.is_dir():
            self._mirror_dir(src, dst)
        else:
            if dst.is_dir() and not dst.is_symlink():
                shutil.rmtree(dst)
            elif dst.is_symlink():
                dst.unlink()
            shutil.copy2(src, dst, follow_symlinks=False)
            self._copy_owner(src, dst)

    def _mirror_dir(self, src: Path, dst: Path) -> None:
        if os.path.lexists(dst) and (dst.is_symlink() or not dst.is_dir()):
            dst.unlink()
        dst.mkdir(exist_ok=True)

        wanted = set()
        with os.scandir(src) as entries:
            for entry in entries:
                wanted.add(entry.name)
                self._mirror_entry(Path(entry.path), dst / entry.name)

        with os.scandir(dst) as entries:
            extras = [Path(e.path) for e in entries if e.name not in wanted]
        for extra in extras:
            if extra.is_dir() and not extra.is_symlink():
                shutil.rmtree(extra)
            else:
                extra.unlink()

        shutil.copystat(src, dst, follow_symlinks=False)
        self._copy_owner(src, dst)

    def _replace_with_symlink(self, src: Path, dst: Path) -> None:
        if dst.is_dir() and not dst.is_symlink():
            shutil.rmtree(dst)
        elif os.path.lexists(dst):
            dst.unlink()
        os.symlink(os.readlink(src), dst)
        self._copy_owner(src, dst)

    def _copy_owner(self, src: Path, dst: Path) -> None:
        if not self.preserve_owner:
            return
        st = os.lstat(src)
        os.chown(dst, st.st_uid, st.st_gid, follow_symlinks=False)


def create_mirror(
    tool: str = "rsync",
    rsync_path: str = "rsync",
    extra_args: Optional[Sequence[str]] = None,
    timeout: Optional[int] = None,
) -> Mirror:
    """Build the configured mirror implementation."""
    if tool == "rsync":
        return RsyncMirror(rsync_path=rsync_path, extra_args=extra_args, timeout=timeout)
    if tool == "copytree":
        return CopyTreeMirror()
    raise ValueError(f"Unknown mirror tool: {tool!r} (expected 'rsync' or 'copytree')")
