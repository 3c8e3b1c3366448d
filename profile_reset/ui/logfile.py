"""Run log file: truncated once it grows past a size threshold."""

from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO


DEFAULT_MAX_BYTES = 8 * 1024


def truncate_if_oversized(path: Path, max_bytes: int = DEFAULT_MAX_BYTES) -> bool:
    """Empty the log when it exceeds max_bytes. Returns True if truncated."""
    if max_bytes <= 0 or not path.is_file():
        return False
    if path.stat().st_size <= max_bytes:
        return False
    path.write_text("")
    return True


def run_header(argv_text: str, now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    return f"\n===== {stamp} profile-reset {argv_text} =====\n"


def open_run_log(
    path: Path,
    argv_text: str = "",
    max_bytes: int = DEFAULT_MAX_BYTES,
    now: Optional[datetime] = None,
) -> TextIO:
    """
    Prepare the log for a new run and return it opened for appending.

    The caller owns the returned handle.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    truncate_if_oversized(path, max_bytes)
    handle = open(path, "a", encoding="utf-8")
    handle.write(run_header(argv_text, now))
    handle.flush()
    return handle
