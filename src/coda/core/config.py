"""Configuration models for coda.

Defines Pydantic v2 models for the orchestrator's settings (intercepted
signals) and its logging, plus YAML loading.

Example ``coda.yaml``:

    signals: [SIGINT, SIGTERM, SIGHUP]
    logging:
      level: DEBUG
      format: json
      file: logs/coda.log
"""

from __future__ import annotations

import signal
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_serializer, field_validator

from coda.core.errors import ConfigError
from coda.lifecycle.signals import DEFAULT_SIGNALS, parse_signals


class LogConfig(BaseModel):
    """Logging settings applied by the CLI via configure_logging()."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Minimum log level for structlog output.",
    )
    format: Literal["json", "console", "both"] = Field(
        default="console",
        description="'console' for human-readable stderr, 'json' for structured "
        "output, 'both' for console plus JSON to file.",
    )
    file: Path | None = Field(
        default=None,
        description="Log file path. Required when format is 'both'.",
    )

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class LifecycleConfig(BaseModel):
    """Top-level orchestrator configuration."""

    signals: list[signal.Signals] = Field(
        default_factory=lambda: list(DEFAULT_SIGNALS),
        description="Termination signals intercepted during a run. Accepts "
        "names ('SIGTERM', 'term') or numbers.",
    )
    logging: LogConfig = Field(
        default_factory=LogConfig,
        description="Logging configuration.",
    )
    config_file: Path | None = Field(
        default=None,
        description="Path to the YAML file this config was loaded from. "
        "Set automatically by load_config().",
    )

    @field_validator("signals", mode="before")
    @classmethod
    def _normalize_signals(cls, v: Any) -> list[signal.Signals]:
        """Accept names and numbers; reject empty lists and unknown signals."""
        if isinstance(v, (str, int)):
            v = [v]
        if not v:
            raise ValueError("signals must contain at least one signal")
        return parse_signals(v)

    @field_serializer("signals")
    def _serialize_signals(self, signals: list[signal.Signals]) -> list[str]:
        return [sig.name for sig in signals]


def load_config(config_file: Path | None) -> LifecycleConfig:
    """Load LifecycleConfig from a YAML file, or return defaults.

    A missing path or ``None`` yields the defaults. When loaded from a
    file, ``config_file`` is set to the resolved path.

    Raises:
        ConfigError: If the file cannot be parsed or fails validation.
    """
    if config_file is None or not config_file.exists():
        return LifecycleConfig()

    try:
        with open(config_file, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot read config file {config_file}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_file} must contain a mapping")

    try:
        config = LifecycleConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config file {config_file}: {exc}") from exc

    config.config_file = config_file.resolve()
    return config


__all__ = ["LifecycleConfig", "LogConfig", "load_config"]
