"""coda CLI.

Commands:
    demo minimal   Run-only example
    demo run       Single run with every optional capability
    demo worker    Looped worker that stops itself
    config show    Display the effective configuration
    config init    Write a default config file

Global options only record logging preferences; each command applies them
once its config file is loaded, so CLI values override the file's.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from coda import __version__

from . import helpers as helpers
from .commands import config_app, demo_app
from .output import console

app = typer.Typer(
    name="coda",
    help="Process lifecycle orchestrator: init, run, cleanup with signals and timeouts.",
    add_completion=False,
    no_args_is_help=True,
)


class LogLevelChoice(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogFormatChoice(str, Enum):
    CONSOLE = "console"
    JSON = "json"
    BOTH = "both"


def _show_version(value: bool) -> None:
    if value:
        console.print(f"coda v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=_show_version,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    log_level: Annotated[
        LogLevelChoice | None,
        typer.Option(
            "--log-level",
            "-L",
            case_sensitive=False,
            envvar="CODA_LOG_LEVEL",
            help="Minimum log level; overrides logging.level from the config file.",
        ),
    ] = None,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            envvar="CODA_LOG_FILE",
            help="Write logs to this file (required with --log-format both).",
        ),
    ] = None,
    log_format: Annotated[
        LogFormatChoice | None,
        typer.Option(
            "--log-format",
            case_sensitive=False,
            envvar="CODA_LOG_FORMAT",
            help="console, json or both; overrides logging.format from the config file.",
        ),
    ] = None,
) -> None:
    """coda - drive work units through init, run and cleanup."""
    if log_level is not None:
        helpers.set_log_level(log_level.value)
    if log_file is not None:
        helpers.set_log_file(log_file)
    if log_format is not None:
        helpers.set_log_format(log_format.value)


app.add_typer(demo_app)
app.add_typer(config_app)


__all__ = ["app", "console", "main"]
