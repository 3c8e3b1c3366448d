"""
UI module - Rich console output and run log.
"""

from .console import ConsoleUI
from .display import report_table, report_footer, status_table
from .logfile import open_run_log, truncate_if_oversized

__all__ = [
    "ConsoleUI",
    "report_table",
    "report_footer",
    "status_table",
    "open_run_log",
    "truncate_if_oversized",
]
