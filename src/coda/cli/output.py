"""Rich output formatting for the coda CLI.

Centralizes the console instance, outcome colors and the panels/tables
used to present a RunReport, a phase failure or the effective config.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from coda.lifecycle.models import Outcome

if TYPE_CHECKING:
    from coda.core.config import LifecycleConfig
    from coda.core.errors import PhaseError
    from coda.lifecycle.models import RunReport

# NOTE: Command modules should use this console or accept it as a parameter.
console = Console()


class OutcomeColors:
    """Color mapping for phase outcomes."""

    OUTCOME: dict[Outcome, str] = {
        Outcome.SUCCESS: "green",
        Outcome.CANCELLED: "yellow",
        Outcome.DEADLINE_EXCEEDED: "magenta",
        Outcome.FAILURE: "red",
    }

    @classmethod
    def get(cls, outcome: Outcome | None) -> str:
        if outcome is None:
            return "dim"
        return cls.OUTCOME.get(outcome, "white")


def format_outcome(outcome: Outcome | None) -> str:
    """Format an outcome with its color, or a dim dash when absent."""
    if outcome is None:
        return "[dim]-[/dim]"
    color = OutcomeColors.get(outcome)
    return f"[{color}]{outcome.value}[/{color}]"


def format_duration(seconds: float | None) -> str:
    """Format a duration in seconds (e.g. "5.2s", "3m 12s", "1h 30m")."""
    if seconds is None:
        return "N/A"

    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"


def create_simple_table(show_header: bool = False) -> Table:
    """Create a table without box styling, for key-value displays."""
    return Table(show_header=show_header, box=None)


def create_report_panel(report: RunReport) -> Panel:
    """Create the summary panel shown after a successful run."""
    table = create_simple_table()
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Run ID", report.run_id)
    table.add_row("Mode", report.mode.value)
    table.add_row("Phases", " -> ".join(p.value for p in report.phases) or "-")
    table.add_row("Iterations", str(report.iterations))
    table.add_row("Run outcome", format_outcome(report.run_outcome))
    table.add_row("Cleanup outcome", format_outcome(report.cleanup_outcome))
    table.add_row("Signal", report.signal.name if report.signal else "-")
    table.add_row("Duration", format_duration(report.duration_seconds))

    border = "yellow" if report.interrupted else "green"
    return Panel(table, title="Run Summary", border_style=border)


def output_phase_error(error: PhaseError, console_instance: Console | None = None) -> None:
    """Print a phase failure with the underlying cause."""
    out = console_instance or console
    phase = escape(f"[{error.phase.value}]")
    out.print(f"[red]Error {phase}:[/red] {escape(str(error.cause))}")
    details = [f"outcome: {error.outcome.value}", f"cause: {type(error.cause).__name__}"]
    iteration = getattr(error, "iteration", None)
    if iteration is not None:
        details.append(f"iteration: {iteration}")
    out.print(f"[dim]{', '.join(details)}[/dim]")


def create_config_table(config: LifecycleConfig) -> Table:
    """Create a table of the effective configuration."""
    table = Table(title="coda configuration", show_header=True)
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("signals", ", ".join(sig.name for sig in config.signals))
    table.add_row("logging.level", config.logging.level)
    table.add_row("logging.format", config.logging.format)
    table.add_row("logging.file", str(config.logging.file) if config.logging.file else "-")
    table.add_row("config_file", str(config.config_file) if config.config_file else "(defaults)")
    return table


__all__ = [
    "OutcomeColors",
    "console",
    "create_config_table",
    "create_report_panel",
    "create_simple_table",
    "format_duration",
    "format_outcome",
    "output_phase_error",
]
