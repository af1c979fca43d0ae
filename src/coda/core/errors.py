"""Exception hierarchy for coda.

All coda exceptions inherit from CodaError, enabling callers to catch
broad (CodaError) or narrow (e.g., CleanupError). The hierarchy is flat
apart from the phase errors, which share PhaseError so a caller can tell
which lifecycle phase failed without string matching.

Two members are not failures at all: ``Cancelled`` and ``DeadlineExceeded``
are the soft outcomes a work unit raises (or a token produces) to end a
phase early. The orchestrator routes them to cleanup instead of surfacing
them as errors.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from coda.lifecycle.models import Outcome, Phase


class CodaError(Exception):
    """Base exception for all coda errors."""


class Cancelled(CodaError):
    """Voluntary cancellation.

    Raised by a work unit to say "I am intentionally finished", or by
    ``CancelToken.raise_if_cancelled()`` when the token was canceled
    (by a signal or because its phase ended).
    """


class DeadlineExceeded(CodaError, TimeoutError):
    """Raised when a token's timeout elapsed before the work finished."""


class CapabilityError(CodaError, TypeError):
    """Raised when a work unit does not satisfy the capability contract.

    Examples: no callable ``run``, ``run_worker`` without ``run_timeout``,
    a negative duration.
    """


class ConfigError(CodaError):
    """Raised when a configuration file cannot be read or validated."""


class PhaseError(CodaError):
    """A lifecycle phase ended with an outcome the orchestrator treats as fatal.

    Attributes:
        phase: The phase that failed.
        outcome: Classification of the underlying exception.
        cause: The exception raised by the work unit (also ``__cause__``).
    """

    def __init__(self, phase: Phase, cause: BaseException) -> None:
        from coda.lifecycle.models import classify

        self.phase = phase
        self.cause = cause
        self.outcome: Outcome = classify(cause)
        super().__init__(f"coda: failed {phase.value} - {cause}")


class InitError(PhaseError):
    """Init failed or was cut short; run and cleanup never executed."""


class RunError(PhaseError):
    """Run failed; cleanup never executed.

    In worker mode ``iteration`` is the 1-based loop iteration that failed.
    """

    def __init__(
        self,
        phase: Phase,
        cause: BaseException,
        iteration: int | None = None,
    ) -> None:
        super().__init__(phase, cause)
        self.iteration = iteration


class CleanupError(PhaseError):
    """Cleanup failed after the run itself finished successfully."""


__all__ = [
    "Cancelled",
    "CapabilityError",
    "CleanupError",
    "CodaError",
    "ConfigError",
    "DeadlineExceeded",
    "InitError",
    "PhaseError",
    "RunError",
]
