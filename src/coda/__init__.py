"""coda - process lifecycle orchestrator.

Drives a work unit through init, run (once or looped) and cleanup while
arbitrating between termination signals, per-phase timeouts and the
unit's own outcome.

Example:
    import coda

    class Job:
        async def run(self, token: coda.CancelToken) -> None:
            await coda.sleep(token, 5)

    coda.run(Job())
"""

from __future__ import annotations

__version__ = "0.1.0"

from coda.core.config import LifecycleConfig, LogConfig, load_config
from coda.core.errors import (
    Cancelled,
    CapabilityError,
    CleanupError,
    CodaError,
    ConfigError,
    DeadlineExceeded,
    InitError,
    PhaseError,
    RunError,
)
from coda.lifecycle.capabilities import (
    Capabilities,
    Cleanable,
    Initializable,
    Runnable,
    RunTimeoutAware,
    SignalAware,
    WorkerUnit,
)
from coda.lifecycle.guard import ExecutionGuard
from coda.lifecycle.models import Outcome, Phase, RunMode, RunReport, classify
from coda.lifecycle.orchestrator import (
    Orchestrator,
    default_orchestrator,
    get_signals,
    run,
    run_worker,
    set_signals,
)
from coda.lifecycle.signals import DEFAULT_SIGNALS, SignalListener
from coda.lifecycle.tokens import CancelReason, CancelToken, sleep

__all__ = [
    "DEFAULT_SIGNALS",
    "CancelReason",
    "CancelToken",
    "Cancelled",
    "Capabilities",
    "CapabilityError",
    "Cleanable",
    "CleanupError",
    "CodaError",
    "ConfigError",
    "DeadlineExceeded",
    "ExecutionGuard",
    "InitError",
    "Initializable",
    "LifecycleConfig",
    "LogConfig",
    "Orchestrator",
    "Outcome",
    "Phase",
    "PhaseError",
    "RunError",
    "RunMode",
    "RunReport",
    "RunTimeoutAware",
    "Runnable",
    "SignalAware",
    "SignalListener",
    "WorkerUnit",
    "__version__",
    "classify",
    "default_orchestrator",
    "get_signals",
    "load_config",
    "run",
    "run_worker",
    "set_signals",
    "sleep",
]
