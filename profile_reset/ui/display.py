"""
ResultDisplay - Formats run reports and status rows as rich tables.
"""

from typing import List

from rich.markup import escape
from rich.table import Table

from ..snapshot.manager import UserStatus
from ..snapshot.models import RunReport
from .console import STATUS_STYLES


def report_table(report: RunReport) -> Table:
    """Summary table for a backup/restore/forget run."""
    table = Table(title=f"{report.mode.capitalize()} summary ({report.today.isoformat()})")
    table.add_column("User", style="bold")
    table.add_column("Action")
    table.add_column("Status")
    table.add_column("Details", overflow="fold")

    for outcome in report.outcomes:
        style = STATUS_STYLES.get(outcome.status, "white")
        details = escape(outcome.message)
        if outcome.paths_cleaned:
            paths = escape(", ".join(outcome.paths_cleaned))
            details += f" [dim]({paths})[/]"
        table.add_row(
            escape(outcome.username),
            outcome.action or "-",
            f"[{style}]{outcome.status.value}[/]",
            details,
        )

    return table


def report_footer(report: RunReport) -> str:
    counts = report.counts()
    if not counts:
        return "[dim]No users processed[/]"
    parts = [f"{status}: {n}" for status, n in sorted(counts.items())]
    return ", ".join(parts)


def status_table(rows: List[UserStatus]) -> Table:
    """Table of snapshot/policy state per user."""
    table = Table(title="Managed users")
    table.add_column("User", style="bold")
    table.add_column("Snapshot")
    table.add_column("Clean after")
    table.add_column("Skip")
    table.add_column("Last clean")
    table.add_column("Today")
    table.add_column("Always clean", overflow="fold")

    for row in rows:
        snapshot = "[green]yes[/]" if row.info.has_snapshot else "[red]missing[/]"
        if row.policy is None:
            reason = escape(row.policy_error or "no policy")
            table.add_row(escape(row.info.username), snapshot, "-", "-", "-", f"[yellow]{reason}[/]", "-")
            continue

        policy = row.policy
        today = row.decision.value if row.decision else "-"
        if row.days_until_due:
            today += f" [dim](full in {row.days_until_due}d)[/]"
        table.add_row(
            escape(row.info.username),
            snapshot,
            f"{policy.clean_after_days}d",
            "yes" if policy.skip_user else "no",
            policy.last_clean.isoformat(),
            today,
            escape(", ".join(policy.clean_always)) or "-",
        )

    return table
