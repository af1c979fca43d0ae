"""Structured logging for coda.

Every lifecycle event is emitted through structlog with the run it belongs
to attached: the orchestrator installs an ExecutionContext (run_id, mode,
phase, iteration) for the duration of a run, and a processor merges it into
each entry. Output goes through stdlib handlers so it can be sent to stderr,
stdout or a rotating file.

Example usage:
    from coda.core.logging import configure_logging, get_logger

    configure_logging(level="DEBUG", format="console")

    logger = get_logger("orchestrator")
    logger.info("run.started", unit="Poller")

    from coda.core.logging import ExecutionContext, with_context

    ctx = ExecutionContext(mode="worker")
    with with_context(ctx.with_iteration(3)):
        logger.debug("phase.started")  # carries run_id, mode, iteration
"""

from __future__ import annotations

import logging
import re
import sys
import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, dataclass, field, replace
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console", "both"]

# Substrings of field names whose values are replaced before rendering.
# "token" is not listed: cancel token names appear in entries.
SENSITIVE_PATTERNS = frozenset({
    "api_key",
    "apikey",
    "secret",
    "password",
    "passwd",
    "credential",
    "authorization",
})

_SENSITIVE_RE = re.compile("|".join(sorted(SENSITIVE_PATTERNS)), re.IGNORECASE)

REDACTED = "[REDACTED]"


@dataclass(frozen=True)
class ExecutionContext:
    """Correlation fields for one orchestrated run.

    Attributes:
        run_id: UUID shared by every entry of the run.
        mode: "single" or "worker".
        phase: Phase currently executing ("init", "run", "cleanup").
        iteration: 1-based worker iteration.
    """

    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    mode: str = "single"
    phase: str | None = None
    iteration: int | None = None

    def with_phase(self, phase: str) -> ExecutionContext:
        return replace(self, phase=phase)

    def with_iteration(self, iteration: int) -> ExecutionContext:
        return replace(self, iteration=iteration)

    def to_dict(self) -> dict[str, Any]:
        """Fields that are set, in declaration order."""
        return {k: v for k, v in asdict(self).items() if v is not None}


_context_var: ContextVar[ExecutionContext | None] = ContextVar(
    "coda_execution_context", default=None
)


def get_current_context() -> ExecutionContext | None:
    return _context_var.get()


@contextmanager
def with_context(ctx: ExecutionContext) -> Iterator[ExecutionContext]:
    """Make ``ctx`` the active ExecutionContext inside the block.

    Contexts nest; leaving the block restores the enclosing one. Worker
    threads started with ``asyncio.to_thread`` inherit it.
    """
    reset_token = _context_var.set(ctx)
    try:
        yield ctx
    finally:
        _context_var.reset(reset_token)


# ─── Processors ──────────────────────────────────────────────────────


def _redact(key: str, value: Any) -> Any:
    if _SENSITIVE_RE.search(key):
        return REDACTED
    if isinstance(value, Mapping):
        return {k: _redact(str(k), v) for k, v in value.items()}
    return value


def _redact_sensitive(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Replace values of sensitive-looking keys, including nested mappings."""
    return {key: _redact(key, value) for key, value in event_dict.items()}


def _merge_execution_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add the active ExecutionContext; keys passed explicitly win."""
    ctx = get_current_context()
    if ctx is not None:
        for key, value in ctx.to_dict().items():
            event_dict.setdefault(key, value)
    return event_dict


def _build_processors(include_timestamps: bool, include_context: bool) -> list[Processor]:
    """Shared chain; rendering is left to each handler's ProcessorFormatter."""
    chain: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        _redact_sensitive,
    ]
    if include_context:
        chain.append(_merge_execution_context)
    if include_timestamps:
        chain.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    chain += [
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]
    return chain


def _formatter(renderer: Processor) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )


# ─── Logger wrapper ──────────────────────────────────────────────────


class CodaLogger:
    """Logger for one coda component.

    Resolves the structlog logger on every call, so module-level instances
    pick up a configure_logging() that runs after import.
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        self._component = component
        self._context: dict[str, Any] = {"component": component, **initial_context}

    def _derive(self, context: dict[str, Any]) -> CodaLogger:
        derived = CodaLogger(self._component)
        derived._context = context
        return derived

    def bind(self, **context: Any) -> CodaLogger:
        return self._derive({**self._context, **context})

    def unbind(self, *keys: str) -> CodaLogger:
        return self._derive({k: v for k, v in self._context.items() if k not in keys})

    def _emit(self, method: str, event: str, fields: dict[str, Any]) -> None:
        bound = structlog.get_logger().bind(**self._context)
        getattr(bound, method)(event, **fields)

    def debug(self, event: str, **kw: Any) -> None:
        self._emit("debug", event, kw)

    def info(self, event: str, **kw: Any) -> None:
        self._emit("info", event, kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._emit("warning", event, kw)

    def error(self, event: str, **kw: Any) -> None:
        self._emit("error", event, kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log at error level with the active exception's traceback."""
        self._emit("exception", event, kw)


def get_logger(component: str, **initial_context: Any) -> CodaLogger:
    """Logger for ``component`` ("orchestrator", "signals", "guard", ...)."""
    return CodaLogger(component, **initial_context)


# ─── Configuration ───────────────────────────────────────────────────


def _build_handlers(
    format: LogFormat,  # noqa: A002
    file_path: Path | None,
    max_bytes: int,
    backup_count: int,
) -> list[logging.Handler]:
    """Handlers for ``format``, each with its own renderer."""
    handlers: list[logging.Handler] = []
    if format in ("console", "both"):
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(_formatter(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())))
        handlers.append(console)

    if format in ("json", "both"):
        sink: logging.Handler
        if file_path is None:
            sink = logging.StreamHandler(sys.stdout)
        else:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            sink = RotatingFileHandler(
                file_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        sink.setFormatter(_formatter(structlog.processors.JSONRenderer()))
        handlers.append(sink)
    return handlers


def configure_logging(
    level: LogLevel = "INFO",
    format: LogFormat = "console",  # noqa: A002
    file_path: Path | None = None,
    max_file_size_mb: int = 10,
    backup_count: int = 3,
    include_timestamps: bool = True,
    include_context: bool = True,
) -> None:
    """Route coda's structlog output through the root stdlib logger.

    Args:
        level: Minimum level emitted.
        format: "console" renders for humans on stderr; "json" writes one
            JSON object per line to ``file_path`` (stdout without a file);
            "both" renders for humans on stderr and as JSON to ``file_path``.
        file_path: Log file, rotated at ``max_file_size_mb``.
        max_file_size_mb: Rotation threshold.
        backup_count: Rotated files kept.
        include_timestamps: Add an ISO8601 UTC ``timestamp`` field.
        include_context: Merge the active ExecutionContext into each entry.

    Raises:
        ValueError: If ``format`` is "both" without ``file_path``, or
            ``level`` is not a logging level name.
    """
    if format == "both" and file_path is None:
        raise ValueError("file_path is required when format='both'")
    numeric_level = logging.getLevelName(level)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level!r}")

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.setLevel(numeric_level)
    for handler in _build_handlers(
        format, file_path, max_file_size_mb * 1024 * 1024, backup_count
    ):
        handler.setLevel(numeric_level)
        root.addHandler(handler)

    structlog.configure(
        processors=_build_processors(include_timestamps, include_context),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


__all__ = [
    "CodaLogger",
    "ExecutionContext",
    "REDACTED",
    "SENSITIVE_PATTERNS",
    "configure_logging",
    "get_current_context",
    "get_logger",
    "with_context",
]
