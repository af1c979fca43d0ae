"""Capability model for work units.

A work unit is any object with a ``run(token)`` method. It opts into the
optional phases by also implementing the matching protocol below; paired
capabilities (init, cleanup) are only recognized when both the operation
and its timeout getter are present.

Phase operations may be coroutine functions or plain functions. Timeout
getters return seconds or a ``datetime.timedelta``.

Example:
    class Poller:
        async def init(self, token: CancelToken) -> None: ...
        def init_timeout(self) -> float: return 5

        async def run(self, token: CancelToken) -> None: ...
        def run_timeout(self) -> float: return 30

        def on_signal(self, signum: signal.Signals) -> None: ...
"""

from __future__ import annotations

import signal
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from coda.core.errors import CapabilityError
from coda.lifecycle.tokens import to_seconds

if TYPE_CHECKING:
    from coda.lifecycle.tokens import CancelToken

Duration = float | timedelta
PhaseCallable = Callable[["CancelToken"], Any]


@runtime_checkable
class Runnable(Protocol):
    """Mandatory capability: the work itself."""

    def run(self, token: CancelToken) -> Any: ...


@runtime_checkable
class Initializable(Protocol):
    """Optional init phase, run once before the first run."""

    def init(self, token: CancelToken) -> Any: ...

    def init_timeout(self) -> Duration: ...


@runtime_checkable
class Cleanable(Protocol):
    """Optional cleanup phase, run once after a successful or soft run."""

    def cleanup(self, token: CancelToken) -> Any: ...

    def cleanup_timeout(self) -> Duration: ...


@runtime_checkable
class RunTimeoutAware(Protocol):
    """Bounds each run invocation; mandatory for worker mode."""

    def run_timeout(self) -> Duration: ...


@runtime_checkable
class SignalAware(Protocol):
    """Receives the caught termination signal."""

    def on_signal(self, signum: signal.Signals) -> None: ...


@runtime_checkable
class WorkerUnit(Runnable, RunTimeoutAware, Protocol):
    """Work unit accepted by ``run_worker``."""


def _duration(unit: object, getter: Callable[[], Duration], name: str) -> float:
    seconds = to_seconds(getter())
    if seconds < 0:
        raise CapabilityError(
            f"{type(unit).__name__}.{name}() returned a negative duration: {seconds}"
        )
    return seconds


@dataclass(frozen=True)
class Capabilities:
    """Snapshot of the capabilities a work unit implements.

    Built once per orchestrated invocation; durations are read when the
    phase that needs them starts.
    """

    unit: object
    run: PhaseCallable
    init: PhaseCallable | None = None
    init_timeout: Callable[[], Duration] | None = None
    cleanup: PhaseCallable | None = None
    cleanup_timeout: Callable[[], Duration] | None = None
    run_timeout: Callable[[], Duration] | None = None
    on_signal: Callable[[signal.Signals], None] | None = None

    @classmethod
    def resolve(cls, unit: object) -> Capabilities:
        """Inspect ``unit`` and record which capabilities are present.

        Raises:
            CapabilityError: If the unit has no callable ``run``.
        """
        if not isinstance(unit, Runnable) or not callable(unit.run):
            raise CapabilityError(
                f"{type(unit).__name__} is not runnable: missing run(token)"
            )

        init = init_timeout = cleanup = cleanup_timeout = None
        if isinstance(unit, Initializable):
            init, init_timeout = unit.init, unit.init_timeout
        if isinstance(unit, Cleanable):
            cleanup, cleanup_timeout = unit.cleanup, unit.cleanup_timeout

        return cls(
            unit=unit,
            run=unit.run,
            init=init,
            init_timeout=init_timeout,
            cleanup=cleanup,
            cleanup_timeout=cleanup_timeout,
            run_timeout=unit.run_timeout if isinstance(unit, RunTimeoutAware) else None,
            on_signal=unit.on_signal if isinstance(unit, SignalAware) else None,
        )

    @property
    def initializable(self) -> bool:
        return self.init is not None

    @property
    def cleanable(self) -> bool:
        return self.cleanup is not None

    def require_run_timeout(self) -> None:
        """Raise CapabilityError unless the unit supplies ``run_timeout``."""
        if self.run_timeout is None:
            raise CapabilityError(
                f"{type(self.unit).__name__} cannot run as a worker: missing run_timeout()"
            )

    def init_seconds(self) -> float:
        if self.init_timeout is None:
            raise CapabilityError(f"{type(self.unit).__name__} has no init_timeout()")
        return _duration(self.unit, self.init_timeout, "init_timeout")

    def run_seconds(self) -> float | None:
        if self.run_timeout is None:
            return None
        return _duration(self.unit, self.run_timeout, "run_timeout")

    def cleanup_seconds(self) -> float:
        if self.cleanup_timeout is None:
            raise CapabilityError(f"{type(self.unit).__name__} has no cleanup_timeout()")
        return _duration(self.unit, self.cleanup_timeout, "cleanup_timeout")

    def names(self) -> list[str]:
        """Names of the optional capabilities present, for logging."""
        present = {
            "init": self.initializable,
            "cleanup": self.cleanable,
            "run_timeout": self.run_timeout is not None,
            "on_signal": self.on_signal is not None,
        }
        return [name for name, ok in present.items() if ok]


__all__ = [
    "Capabilities",
    "Cleanable",
    "Duration",
    "Initializable",
    "RunTimeoutAware",
    "Runnable",
    "SignalAware",
    "WorkerUnit",
]
