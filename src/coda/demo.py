"""Example work units used by ``coda demo``.

Each unit sleeps through its phases with ``coda.sleep`` so that a
Ctrl+C (or SIGTERM) shows the cancellation paths: the sleep returns
early, raises ``Cancelled`` and the orchestrator moves on to cleanup.
"""

from __future__ import annotations

import signal
from dataclasses import dataclass, field

from coda.core.errors import Cancelled
from coda.core.logging import get_logger
from coda.lifecycle.tokens import CancelToken, sleep

_logger = get_logger("demo")


async def _nap(token: CancelToken, seconds: float, label: str) -> None:
    _logger.info(f"{label}.sleeping", seconds=seconds)
    try:
        await sleep(token, seconds)
    except (Cancelled, TimeoutError):
        _logger.info(f"{label}.interrupted", reason=token.detail)
        raise
    _logger.info(f"{label}.complete")


@dataclass
class MinimalExample:
    """Run only: no init, no cleanup, bounded by signals alone."""

    duration: float = 5.0

    async def run(self, token: CancelToken) -> None:
        await _nap(token, self.duration, "run")


@dataclass
class RunExample:
    """Single run implementing every optional capability."""

    init_duration: float = 1.0
    duration: float = 5.0
    cleanup_duration: float = 1.0
    timeout: float = 6.0
    caught: list[signal.Signals] = field(default_factory=list)

    async def init(self, token: CancelToken) -> None:
        await _nap(token, self.init_duration, "init")

    async def run(self, token: CancelToken) -> None:
        await _nap(token, self.duration, "run")

    async def cleanup(self, token: CancelToken) -> None:
        await _nap(token, self.cleanup_duration, "cleanup")

    def on_signal(self, signum: signal.Signals) -> None:
        self.caught.append(signum)
        _logger.info("demo.signal_caught", signal=signum.name)

    def init_timeout(self) -> float:
        return self.init_duration + 1

    def run_timeout(self) -> float:
        return self.timeout

    def cleanup_timeout(self) -> float:
        return self.cleanup_duration + 1


@dataclass
class WorkerExample(RunExample):
    """Worker that reports voluntary completion after ``iterations`` runs."""

    iterations: int = 5
    counter: int = 0

    async def run(self, token: CancelToken) -> None:
        await _nap(token, self.duration, "run")
        self.counter += 1
        if self.counter >= self.iterations:
            raise Cancelled(f"finished after {self.counter} iterations")


__all__ = ["MinimalExample", "RunExample", "WorkerExample"]
