"""Lifecycle vocabulary: phases, modes, outcomes and the run report."""

from __future__ import annotations

import signal
from dataclasses import dataclass, field
from enum import Enum

from coda.core.errors import Cancelled, DeadlineExceeded


class Phase(str, Enum):
    """Lifecycle phase of a work unit."""

    INIT = "init"
    RUN = "run"
    CLEANUP = "cleanup"


class RunMode(str, Enum):
    """How the run phase is driven."""

    SINGLE = "single"
    WORKER = "worker"


class Outcome(str, Enum):
    """Result of one phase invocation."""

    SUCCESS = "success"
    CANCELLED = "cancelled"  # voluntary cancellation sentinel
    DEADLINE_EXCEEDED = "deadline_exceeded"
    FAILURE = "failure"

    @property
    def is_soft(self) -> bool:
        """Soft outcomes route to cleanup and never surface as errors."""
        return self is not Outcome.FAILURE


def classify(exc: BaseException | None) -> Outcome:
    """Map the exception a phase raised (or None) to its Outcome."""
    if exc is None:
        return Outcome.SUCCESS
    if isinstance(exc, DeadlineExceeded):
        return Outcome.DEADLINE_EXCEEDED
    if isinstance(exc, Cancelled):
        return Outcome.CANCELLED
    return Outcome.FAILURE


@dataclass
class RunReport:
    """Summary of a completed orchestrated run.

    Only produced for runs that end without a phase error; failures are
    raised as PhaseError subclasses instead.
    """

    mode: RunMode
    run_id: str
    iterations: int = 0
    run_outcome: Outcome | None = None
    cleanup_outcome: Outcome | None = None
    signal: signal.Signals | None = None
    phases: list[Phase] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def interrupted(self) -> bool:
        """True when a termination signal was caught during the run."""
        return self.signal is not None
