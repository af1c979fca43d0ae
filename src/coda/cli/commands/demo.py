"""Demo commands for the coda CLI.

``coda demo minimal|run|worker`` drive the example work units from
``coda.demo`` through a real orchestrator, so signal handling can be
tried interactively: press Ctrl+C during a run to watch it shut down
gracefully, press it again to force-quit.
"""

from __future__ import annotations

from pathlib import Path

import typer

from coda.core.errors import PhaseError
from coda.demo import MinimalExample, RunExample, WorkerExample
from coda.lifecycle.models import RunReport
from coda.lifecycle.orchestrator import Orchestrator

from ..helpers import configure_global_logging, load_config_or_exit
from ..output import console, create_report_panel, output_phase_error

demo_app = typer.Typer(
    name="demo",
    help="Run the example work units.",
    no_args_is_help=True,
)

_CONFIG_OPTION = typer.Option(None, "--config", "-c", help="YAML config file")


def _execute(unit: object, config_file: Path | None, worker: bool = False) -> RunReport:
    config = load_config_or_exit(config_file, console)
    configure_global_logging(console, config)
    orchestrator = Orchestrator(config)
    console.print(
        f"[dim]Intercepting {', '.join(s.name for s in orchestrator.signals)}[/dim]"
    )

    try:
        if worker:
            report = orchestrator.run_worker(unit)  # type: ignore[arg-type]
        else:
            report = orchestrator.run(unit)
    except PhaseError as e:
        output_phase_error(e)
        raise typer.Exit(1) from None

    console.print(create_report_panel(report))
    return report


@demo_app.command()
def minimal(
    duration: float = typer.Option(5.0, "--duration", "-d", help="Seconds the run sleeps"),
    config_file: Path | None = _CONFIG_OPTION,
) -> None:
    """Run only, bounded by signals alone."""
    _execute(MinimalExample(duration=duration), config_file)


@demo_app.command(name="run")
def run_cmd(
    init: float = typer.Option(1.0, "--init", help="Seconds init sleeps"),
    duration: float = typer.Option(5.0, "--duration", "-d", help="Seconds the run sleeps"),
    cleanup: float = typer.Option(1.0, "--cleanup", help="Seconds cleanup sleeps"),
    run_timeout: float = typer.Option(6.0, "--run-timeout", "-t", help="Run timeout in seconds"),
    config_file: Path | None = _CONFIG_OPTION,
) -> None:
    """Single run with init, cleanup, run timeout and signal callback."""
    unit = RunExample(
        init_duration=init,
        duration=duration,
        cleanup_duration=cleanup,
        timeout=run_timeout,
    )
    _execute(unit, config_file)


@demo_app.command()
def worker(
    iterations: int = typer.Option(5, "--iterations", "-n", min=1, help="Iterations before stopping"),
    duration: float = typer.Option(1.0, "--duration", "-d", help="Seconds each iteration sleeps"),
    run_timeout: float = typer.Option(6.0, "--run-timeout", "-t", help="Per-iteration timeout"),
    config_file: Path | None = _CONFIG_OPTION,
) -> None:
    """Worker loop that stops itself after N iterations."""
    unit = WorkerExample(
        init_duration=0.1,
        duration=duration,
        cleanup_duration=0.1,
        timeout=run_timeout,
        iterations=iterations,
    )
    _execute(unit, config_file, worker=True)
