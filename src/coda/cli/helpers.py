"""Shared utilities for coda CLI commands.

Holds the CLI's logging state (filled in by the global option callbacks
and applied once before a command runs) and config loading with
user-facing error reporting.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import typer
from rich.console import Console

from coda.core.config import LifecycleConfig, load_config
from coda.core.errors import ConfigError
from coda.core.logging import configure_logging

# =============================================================================
# Logging configuration
# =============================================================================


@dataclass
class CliLoggingConfig:
    """CLI logging configuration state.

    ``None`` fields mean "not given on the command line" so values from
    a config file can fill them in.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None
    file: Path | None = None
    format: Literal["json", "console", "both"] | None = None
    configured: bool = False


# Single global config instance
_log_config = CliLoggingConfig()


def get_log_config() -> CliLoggingConfig:
    return _log_config


def set_log_level(level: str) -> None:
    _log_config.level = level.upper()  # type: ignore[assignment]


def set_log_file(path: Path | None) -> None:
    _log_config.file = path


def set_log_format(fmt: str) -> None:
    _log_config.format = fmt.lower()  # type: ignore[assignment]


def configure_global_logging(console: Console, config: LifecycleConfig | None = None) -> None:
    """Configure logging from CLI options, falling back to ``config.logging``.

    Only configures once per session.

    Raises:
        typer.Exit: If logging configuration fails.
    """
    if _log_config.configured:
        return

    defaults = (config or LifecycleConfig()).logging
    try:
        configure_logging(
            level=_log_config.level or defaults.level,
            format=_log_config.format or defaults.format,
            file_path=_log_config.file or defaults.file,
        )
        _log_config.configured = True
    except (ValueError, AttributeError) as e:
        # Bad level name, or format="both" without a file
        console.print(f"[red]Logging configuration error:[/red] {e}")
        raise typer.Exit(1) from None


def reset_logging_state() -> None:
    """Reset CLI logging state (primarily for testing)."""
    global _log_config
    _log_config = CliLoggingConfig()


# =============================================================================
# Config loading
# =============================================================================


def load_config_or_exit(config_file: Path | None, console: Console) -> LifecycleConfig:
    """Load config for a command, printing the error and exiting on failure."""
    if config_file is not None and not config_file.exists():
        console.print(f"[red]Config file not found:[/red] {config_file}")
        raise typer.Exit(1)
    try:
        return load_config(config_file)
    except ConfigError as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from None
