# coda/cli/commands: Command modules for the coda CLI.
#
# Each module provides a Typer sub-application.

from .config_cmd import config_app
from .demo import demo_app

__all__ = ["config_app", "demo_app"]
