"""
CLI - Command-line interface for profile_reset.

Modes:
    backup   take fresh snapshots of the given users' profiles
    restore  apply each user's policy (skip / full restore / partial clean)
    status   show snapshots, policies and today's decision
    forget   delete users' snapshots and policy records
"""

import argparse
import sys
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from rich.console import Console
from rich.markup import escape

from . import __version__
from .config import Config
from .errors import ConfigError, StorageRootError
from .snapshot import SnapshotManager, RunReport
from .ui import ConsoleUI, open_run_log, report_footer, report_table, status_table


def split_users(values: Optional[Iterable[str]]) -> Optional[List[str]]:
    """
    Flatten --users values. Each value may hold several comma-separated
    names; blanks are dropped and order of first appearance is kept.
    """
    if values is None:
        return None
    users: List[str] = []
    for value in values:
        for name in value.replace(",", " ").split():
            if name not in users:
                users.append(name)
    return users


def _common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-c", "--config",
        metavar="PATH",
        help="Config file (default: $PROFILE_RESET_CONFIG or standard locations)"
    )
    common.add_argument(
        "--log",
        nargs="?",
        const=True,
        default=None,
        metavar="PATH",
        help="Append output to a run log (default path from config)"
    )
    common.add_argument(
        "--storage-root",
        metavar="DIR",
        help="Snapshot storage root (overrides config)"
    )
    common.add_argument(
        "--profiles-root",
        metavar="DIR",
        help="Parent directory of live profiles (overrides config)"
    )
    common.add_argument(
        "--mirror-tool",
        choices=["rsync", "copytree"],
        help="Mirror implementation (overrides config)"
    )
    common.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only print failures"
    )
    return common


def build_parser() -> argparse.ArgumentParser:
    common = _common_options()
    parser = argparse.ArgumentParser(
        prog="profile-reset",
        description="Per-user profile snapshots with policy-driven restore",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    profile-reset backup --users alice,bob
    profile-reset restore
    profile-reset restore --users alice --force
    profile-reset restore --dry-run --log
    profile-reset status

Environment Variables:
    PROFILE_RESET_CONFIG          Config file path
    PROFILE_RESET_STORAGE_ROOT    Snapshot storage root
    PROFILE_RESET_PROFILES_ROOT   Parent directory of live profiles
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    sub = parser.add_subparsers(dest="command", metavar="MODE")
    sub.required = True

    backup = sub.add_parser("backup", parents=[common], help="Snapshot users' live profiles")
    backup.add_argument(
        "-u", "--users",
        action="append",
        nargs="+",
        required=True,
        metavar="NAME[,NAME...]",
        help="Users to back up (comma or space separated, repeatable)"
    )

    restore = sub.add_parser("restore", parents=[common], help="Apply restore policy")
    restore.add_argument(
        "-u", "--users",
        action="append",
        nargs="+",
        metavar="NAME[,NAME...]",
        help="Users to restore (default: every user with a policy)"
    )
    restore.add_argument(
        "-f", "--force",
        action="store_true",
        help="Full restore regardless of schedule or skipUser"
    )
    restore.add_argument(
        "-n", "--dry-run",
        action="store_true",
        help="Report decisions without changing anything"
    )

    status = sub.add_parser("status", parents=[common], help="Show snapshots and policies")
    status.add_argument(
        "-u", "--users",
        action="append",
        nargs="+",
        metavar="NAME[,NAME...]",
        help="Only these users"
    )

    forget = sub.add_parser("forget", parents=[common], help="Delete users' snapshots and policies")
    forget.add_argument(
        "-u", "--users",
        action="append",
        nargs="+",
        required=True,
        metavar="NAME[,NAME...]",
        help="Users to forget"
    )

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = build_parser()
    args = parser.parse_args(argv)

    raw = args.users
    if raw is not None:
        # "append" + nargs="+" yields a list of lists
        flat = [v for group in raw for v in (group if isinstance(group, list) else [group])]
        args.users = split_users(flat)
        if not args.users:
            parser.error("--users needs at least one user name")
    return args


# =============================================================================
# Modes
# =============================================================================

def _print_report(ui: ConsoleUI, report: RunReport) -> int:
    if report.outcomes:
        ui.print()
        ui.print(report_table(report))
    ui.print(report_footer(report))
    return report.exit_code


def run_backup(manager: SnapshotManager, args, ui: ConsoleUI) -> int:
    ui.print_header("Backup")
    try:
        report = manager.backup(args.users, on_outcome=ui.print_outcome)
    except StorageRootError as e:
        ui.print_error(str(e))
        return 1
    return _print_report(ui, report)


def run_restore(manager: SnapshotManager, args, ui: ConsoleUI) -> int:
    title = "Restore (dry run)" if args.dry_run else "Restore"
    if args.force:
        title += " (forced)"
    ui.print_header(title)
    report = manager.restore(
        args.users,
        force=args.force,
        dry_run=args.dry_run,
        on_outcome=ui.print_outcome,
    )
    return _print_report(ui, report)


def run_status(manager: SnapshotManager, args, ui: ConsoleUI) -> int:
    ui.print_header("Status")
    ui.print(escape(manager.config.summary()))
    rows = manager.status(args.users)
    if not rows:
        ui.print("[dim]No managed users[/]")
        return 0
    ui.print(status_table(rows))
    return 0


def run_forget(manager: SnapshotManager, args, ui: ConsoleUI) -> int:
    ui.print_header("Forget")
    report = manager.forget(args.users, on_outcome=ui.print_outcome)
    return _print_report(ui, report)


MODES: Dict[str, Callable[[SnapshotManager, argparse.Namespace, ConsoleUI], int]] = {
    "backup": run_backup,
    "restore": run_restore,
    "status": run_status,
    "forget": run_forget,
}


def main(
    argv: Optional[List[str]] = None,
    manager_factory: Callable[[Config], SnapshotManager] = SnapshotManager,
    console: Optional[Console] = None,
) -> int:
    """Main entry point. Returns the process exit status."""
    args = parse_args(argv)
    ui = ConsoleUI(quiet=args.quiet, console=console)

    try:
        config = Config.load(args.config)
    except ConfigError as e:
        ui.print_error(str(e))
        return 1
    config.override_from_args(args)

    log_handle = None
    try:
        if args.log:
            argv_text = " ".join(argv if argv is not None else sys.argv[1:])
            try:
                log_handle = open_run_log(
                    Path(config.log.path), argv_text, max_bytes=config.log.max_bytes
                )
            except OSError as e:
                ui.print_error(f"Cannot open log file {config.log.path}: {e}")
                return 1
            ui.attach_log(log_handle)

        errors = config.validate()
        if errors:
            for error in errors:
                ui.print_error(error)
            return 1

        ui.print_banner()
        manager = manager_factory(config)
        return MODES[args.command](manager, args, ui)
    finally:
        if log_handle is not None:
            log_handle.close()
