"""Configuration commands for the coda CLI.

Subcommands:
- `coda config show`  - Display the effective config as a Rich table
- `coda config init`  - Write a default config file
"""

from __future__ import annotations

from pathlib import Path

import typer
import yaml

from coda.core.config import LifecycleConfig

from ..helpers import load_config_or_exit
from ..output import console, create_config_table

config_app = typer.Typer(
    name="config",
    help="Inspect and create coda configuration.",
    no_args_is_help=True,
)

DEFAULT_CONFIG_FILE = Path("coda.yaml")


@config_app.command()
def show(
    config_file: Path | None = typer.Option(None, "--config", "-c", help="YAML config file"),
) -> None:
    """Show the effective configuration."""
    config = load_config_or_exit(config_file, console)
    console.print(create_config_table(config))


@config_app.command()
def init(
    path: Path = typer.Argument(DEFAULT_CONFIG_FILE, help="Where to write the config"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """Write a config file containing the defaults."""
    if path.exists() and not force:
        console.print(f"[yellow]Config file already exists:[/yellow] {path} (use --force)")
        raise typer.Exit(1)

    data = LifecycleConfig().model_dump(mode="json", exclude={"config_file"})
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    console.print(f"[green]Wrote[/green] {path}")
