"""
ConsoleUI - Rich-based console interface.

Everything printed goes to the terminal (unless quiet) and, when a run log
is attached, to a plain-text rich Console writing into that file.
"""

from typing import Optional, TextIO

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from .. import __version__
from ..snapshot.models import OutcomeStatus, UserOutcome


STATUS_STYLES = {
    OutcomeStatus.BACKED_UP: "green",
    OutcomeStatus.RESTORED: "bold green",
    OutcomeStatus.CLEANED: "green",
    OutcomeStatus.SKIPPED: "dim",
    OutcomeStatus.PLANNED: "cyan",
    OutcomeStatus.REMOVED: "magenta",
    OutcomeStatus.WARNING: "yellow",
    OutcomeStatus.FAILED: "bold red",
}


class ConsoleUI:
    """
    Rich console interface for profile_reset.
    """

    def __init__(
        self,
        quiet: bool = False,
        console: Optional[Console] = None,
        log_file: Optional[TextIO] = None,
    ):
        self.quiet = quiet
        self.console = console or Console()
        self.log_console: Optional[Console] = None
        if log_file is not None:
            self.attach_log(log_file)

    def attach_log(self, log_file: TextIO) -> None:
        """Tee all further output into log_file as plain text."""
        self.log_console = Console(
            file=log_file,
            no_color=True,
            force_terminal=False,
            highlight=False,
            width=120,
        )

    def print(self, *args, **kwargs):
        """Print to console (and log)."""
        if not self.quiet:
            self.console.print(*args, **kwargs)
        if self.log_console:
            self.log_console.print(*args, **kwargs)

    def print_header(self, title: str):
        """Print a section header."""
        if not self.quiet:
            self.console.print()
            self.console.rule(f"[bold blue]{title}[/]")
        if self.log_console:
            self.log_console.rule(title)

    def print_banner(self):
        """Print application banner."""
        if self.quiet:
            return
        banner = f"[bold cyan]Profile Reset[/] [dim]v{__version__}[/]\n[dim]Per-user profile snapshots & scheduled restore[/]"
        self.console.print(Panel(banner, border_style="cyan"))

    def print_error(self, message: str):
        """Print error message. Errors are shown even in quiet mode."""
        self.console.print(f"[bold red]Error:[/] {escape(message)}")
        if self.log_console:
            self.log_console.print(f"Error: {escape(message)}")

    def print_outcome(self, outcome: UserOutcome):
        """One line per processed user, as it finishes."""
        style = STATUS_STYLES.get(outcome.status, "white")
        line = f"[{style}]{outcome.status.value:>9}[/] [bold]{escape(outcome.username)}[/]"
        if outcome.message:
            line += f"  {escape(outcome.message)}"
        if outcome.status == OutcomeStatus.FAILED:
            # failures must reach the terminal even when quiet
            self.console.print(line)
            if self.log_console:
                self.log_console.print(line)
        else:
            self.print(line)
