# P4Sync Console Output
# Rich-based console output for live progress and the final summary

from typing import Optional

from rich.console import Console as RichConsole
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from p4sync.config.schema import P4SyncConfig
from p4sync.sync.classifier import Outcome, OutcomeKind, SuccessKind
from p4sync.sync.state import SyncReport

SUCCESS_STYLES: dict[SuccessKind, str] = {
    SuccessKind.UPDATED: "green",
    SuccessKind.ADDED: "cyan",
    SuccessKind.DELETED: "blue",
}


class Console:
    """
    Console output manager using Rich.

    Outcome lines are printed from worker threads; rich serialises
    writes internally so lines never interleave.
    """

    def __init__(self, *, verbose: bool = False, colored: bool = True):
        """
        Initialize console.

        Args:
            verbose: Enable verbose output.
            colored: Enable colored output.
        """
        self.verbose = verbose
        self._console = RichConsole(force_terminal=colored, no_color=not colored, highlight=False)

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def print_error(self, message: str) -> None:
        """Print error message."""
        self._console.print(f"[red]Error:[/red] {escape(message)}")

    def print_warning(self, message: str) -> None:
        """Print warning message."""
        self._console.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def print_success(self, message: str) -> None:
        """Print success message."""
        self._console.print(f"[green]{escape(message)}[/green]")

    def print_info(self, message: str) -> None:
        """Print info message."""
        self._console.print(f"[blue]{escape(message)}[/blue]")

    def print_debug(self, message: str) -> None:
        """Print message only in verbose mode."""
        if self.verbose:
            self._console.print(f"[dim]{escape(message)}[/dim]")

    def print_dispatch(self, target: str, index: int, total: int) -> None:
        """Print progress before a file is synced (verbose only)."""
        if self.verbose:
            self._console.print(f"[dim]{escape(f'[{index}/{total}] Syncing {target}...')}[/dim]")

    def print_outcome(self, target: str, outcome: Outcome) -> None:
        """
        Print one line for a classified sync result.

        Args:
            target: Depot path that was synced.
            outcome: Its classification.
        """
        path = escape(target)

        if outcome.kind == OutcomeKind.SUCCESS:
            if outcome.success is None:
                if self.verbose:
                    self._console.print(f"[dim]{'synced':<7} {path}[/dim]")
                return
            style = SUCCESS_STYLES[outcome.success]
            self._console.print(f"[{style}]{outcome.success.value:<7} {path}[/{style}]")
        elif outcome.kind == OutcomeKind.CLOBBER_CONFLICT:
            self._console.print(f"[yellow]clobbered {path}[/yellow]")
        elif outcome.kind == OutcomeKind.NEEDS_RESOLVE:
            self._console.print(f"[red]conflict: {path}[/red]")
        elif outcome.kind == OutcomeKind.GENERIC_ERROR:
            self._console.print(f"[red]{escape(outcome.message or target)}[/red]")
        else:
            self._console.print(f"[bold red]connection failed: {path}[/bold red] {escape(outcome.message)}")

    def print_targets(self, targets: list[str]) -> None:
        """Print files a sync would touch (dry run)."""
        if not targets:
            self._console.print("[dim]No files to sync[/dim]")
            return

        for target in targets:
            self._console.print(f"  {escape(target)}")
        self._console.print(f"\n{len(targets)} file(s) would be synced")

    def print_sync_summary(self, report: SyncReport) -> None:
        """
        Print the final sync summary.

        Args:
            report: Snapshot taken after all workers joined.
        """
        if report.errors > 0 or report.fatal:
            style = "red"
        elif report.clobbered > 0 or report.conflicts > 0:
            style = "yellow"
        else:
            style = "white"

        title = "Sync aborted" if report.fatal else "Sync finished"
        lines = [
            f"[{style}]{title}[/{style}]",
            f"  Errors:    {report.errors}",
            f"  Conflicts: {report.conflicts}",
            f"  Clobbered: {report.clobbered}",
            f"  Updated:   {report.updated}",
            f"  Added:     {report.added}",
            f"  Deleted:   {report.deleted}",
        ]

        if report.fatal:
            lines.append("")
            lines.append(f"[red]Fatal:[/red] {escape(report.fatal_reason or 'connection to server failed')}")
            lines.append(f"  Not synced: {report.remaining} of {report.total}")

        if report.needs_resolve:
            lines.append("")
            lines.append(f"[{style}]Files need resolving:[/{style}]")
            for target in report.needs_resolve:
                lines.append(f"  {escape(target)}")

        if report.error_messages and self.verbose:
            lines.append("")
            lines.append("[red]Errors:[/red]")
            for target, message in report.error_messages:
                lines.append(f"  • {escape(target)}: {escape(message)}")

        self._console.print()
        self._console.print(Panel("\n".join(lines), title="Summary", border_style=style))

    def print_config(self, config: P4SyncConfig, config_path: str) -> None:
        """Print effective configuration."""
        table = Table(show_header=True, header_style="bold", title=f"Configuration ({config_path})")
        table.add_column("Setting")
        table.add_column("Value", style="cyan")

        table.add_row("depot_root", config.depot_root)
        table.add_row("threads", str(config.threads))
        table.add_row("idle_interval", f"{config.idle_interval}s")
        table.add_row("poll_interval", f"{config.poll_interval}s")
        table.add_row("p4.executable", config.p4.executable)
        table.add_row("p4.workspace", config.p4.workspace or "[dim](current directory)[/dim]")
        table.add_row("output.verbose", str(config.output.verbose))
        table.add_row("output.colored", str(config.output.colored))

        self._console.print(table)


def create_console(*, verbose: bool = False, colored: bool = True) -> Console:
    """
    Create a console instance.

    Args:
        verbose: Enable verbose output.
        colored: Enable colored output.

    Returns:
        Console instance.
    """
    return Console(verbose=verbose, colored=colored)
