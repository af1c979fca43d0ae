"""Lifecycle orchestrator: drives a work unit through init, run and cleanup.

Two entry points share one prologue and one error policy:

- ``Orchestrator.run`` executes run exactly once.
- ``Orchestrator.run_worker`` executes run repeatedly, each iteration under
  its own detached timeout, and only looks at the signal-canceled root
  token between iterations.

Error policy (both modes):

- any exception from init raises InitError; run and cleanup are skipped;
- a hard failure from run raises RunError; cleanup is skipped;
- a soft outcome from run (success, Cancelled, DeadlineExceeded) proceeds
  to cleanup under a fresh detached token;
- a hard failure from cleanup raises CleanupError.

Each invocation holds the orchestrator's ExecutionGuard for its whole
duration and runs on its own event loop, so ``run``/``run_worker`` are
plain blocking calls and must not be made from inside a running loop.
"""

from __future__ import annotations

import asyncio
import inspect
import signal
import threading
import time
import uuid
from collections.abc import Iterable
from typing import Any

from coda.core.config import LifecycleConfig
from coda.core.errors import CleanupError, InitError, RunError
from coda.core.logging import ExecutionContext, get_logger, with_context
from coda.lifecycle.capabilities import Capabilities, PhaseCallable, WorkerUnit
from coda.lifecycle.guard import ExecutionGuard
from coda.lifecycle.models import Outcome, Phase, RunMode, RunReport, classify
from coda.lifecycle.signals import SignalLike, SignalListener, parse_signals
from coda.lifecycle.tokens import CancelToken

_logger = get_logger("orchestrator")


async def _call(fn: PhaseCallable, token: CancelToken) -> Any:
    """Await coroutine functions; run plain functions on a worker thread."""
    if inspect.iscoroutinefunction(fn):
        return await fn(token)
    result = await asyncio.to_thread(fn, token)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _invoke(
    phase: Phase,
    fn: PhaseCallable,
    token: CancelToken,
    ctx: ExecutionContext,
) -> tuple[Outcome, Exception | None]:
    """Run one phase operation and classify how it ended.

    ``token`` is canceled when the operation returns, whatever the outcome.
    """
    with with_context(ctx.with_phase(phase.value)):
        _logger.debug("phase.started", deadline_in=token.remaining())
        started = time.monotonic()
        error: Exception | None = None
        try:
            await _call(fn, token)
        except Exception as exc:
            error = exc
        finally:
            token.cancel(detail=f"{phase.value} finished")
        outcome = classify(error)
        _logger.debug(
            "phase.completed",
            outcome=outcome.value,
            duration_seconds=round(time.monotonic() - started, 3),
        )
    return outcome, error


class Orchestrator:
    """Runs work units one at a time with signal and timeout handling.

    Args:
        config: Configuration supplying the intercepted signal set.
        signals: Overrides ``config.signals`` when given.

    Each instance owns its signal set and its ExecutionGuard; the
    module-level ``run``/``run_worker`` functions share a default instance.
    """

    def __init__(
        self,
        config: LifecycleConfig | None = None,
        *,
        signals: Iterable[SignalLike] | None = None,
    ) -> None:
        self._config = config or LifecycleConfig()
        self._signals = parse_signals(self._config.signals if signals is None else signals)
        self._guard = ExecutionGuard()

    @property
    def config(self) -> LifecycleConfig:
        return self._config

    @property
    def guard(self) -> ExecutionGuard:
        return self._guard

    @property
    def signals(self) -> list[signal.Signals]:
        return list(self._signals)

    def set_signals(self, signals: Iterable[SignalLike]) -> None:
        """Replace the intercepted signals; takes effect from the next run."""
        self._signals = parse_signals(signals)

    # ─── Public entry points ──────────────────────────────────────────

    def run(self, unit: object) -> RunReport:
        """Execute init, run (once) and cleanup.

        Raises:
            CapabilityError: If ``unit`` has no ``run``.
            InitError, RunError, CleanupError: When that phase failed.
        """
        caps = Capabilities.resolve(unit)
        with self._guard:
            return asyncio.run(self._execute(caps, RunMode.SINGLE))

    def run_worker(self, unit: WorkerUnit) -> RunReport:
        """Execute init, run (looped) and cleanup.

        The loop ends when an iteration raises, returns after the run was
        interrupted by a signal, or ends with a soft outcome.

        Raises:
            CapabilityError: If ``unit`` lacks ``run`` or ``run_timeout``.
            InitError, RunError, CleanupError: When that phase failed.
        """
        caps = Capabilities.resolve(unit)
        caps.require_run_timeout()
        with self._guard:
            return asyncio.run(self._execute(caps, RunMode.WORKER))

    # ─── Controllers ──────────────────────────────────────────────────

    async def _execute(self, caps: Capabilities, mode: RunMode) -> RunReport:
        """Shared prologue, error policy and teardown for both modes."""
        report = RunReport(mode=mode, run_id=str(uuid.uuid4()))
        ctx = ExecutionContext(run_id=report.run_id, mode=mode.value)
        root = CancelToken("root")
        listener = SignalListener(root, self._signals, caps.on_signal)

        with with_context(ctx):
            started = time.monotonic()
            _logger.info("run.started", unit=type(caps.unit).__name__, capabilities=caps.names())
            listener.install()
            try:
                await self._init(caps, root, ctx, report)

                report.phases.append(Phase.RUN)
                if mode is RunMode.WORKER:
                    outcome, error = await self._loop(caps, root, ctx, report)
                else:
                    outcome, error = await self._run_once(caps, root, ctx, report)
                report.run_outcome = outcome
                if error is not None and not outcome.is_soft:
                    iteration = report.iterations if mode is RunMode.WORKER else None
                    raise RunError(Phase.RUN, error, iteration=iteration) from error

                await self._cleanup(caps, ctx, report)
            finally:
                listener.remove()
                report.signal = listener.caught
                root.cancel(detail="run finished")
                report.duration_seconds = round(time.monotonic() - started, 3)

            _logger.info(
                "run.finished",
                outcome=report.run_outcome.value if report.run_outcome else None,
                iterations=report.iterations,
                signal=report.signal.name if report.signal else None,
                duration_seconds=report.duration_seconds,
            )
        return report

    async def _run_once(
        self,
        caps: Capabilities,
        root: CancelToken,
        ctx: ExecutionContext,
        report: RunReport,
    ) -> tuple[Outcome, Exception | None]:
        run_seconds = caps.run_seconds()
        # Without run_timeout the run is bounded only by signals
        token = root if run_seconds is None else root.child(run_seconds, name="run")
        report.iterations = 1
        return await _invoke(Phase.RUN, caps.run, token, ctx)

    async def _loop(
        self,
        caps: Capabilities,
        root: CancelToken,
        ctx: ExecutionContext,
        report: RunReport,
    ) -> tuple[Outcome, Exception | None]:
        """Repeat run until a non-success outcome or a signal between iterations."""
        while True:
            report.iterations += 1
            iteration_ctx = ctx.with_iteration(report.iterations)
            # Never derived from root; signals are checked between iterations only
            token = CancelToken.detached(caps.run_seconds(), name=f"iteration-{report.iterations}")
            outcome, error = await _invoke(Phase.RUN, caps.run, token, iteration_ctx)

            if outcome is not Outcome.SUCCESS:
                with with_context(iteration_ctx):
                    _logger.debug("worker.stopped", outcome=outcome.value)
                return outcome, error
            if root.cancelled:
                with with_context(iteration_ctx):
                    _logger.info("worker.interrupted", reason=root.detail)
                return outcome, error

    async def _init(
        self,
        caps: Capabilities,
        root: CancelToken,
        ctx: ExecutionContext,
        report: RunReport,
    ) -> None:
        if caps.init is None:
            return
        token = root.child(caps.init_seconds(), name="init")
        report.phases.append(Phase.INIT)
        _, error = await _invoke(Phase.INIT, caps.init, token, ctx)
        # Soft outcomes fail init too
        if error is not None:
            raise InitError(Phase.INIT, error) from error

    async def _cleanup(
        self,
        caps: Capabilities,
        ctx: ExecutionContext,
        report: RunReport,
    ) -> None:
        if caps.cleanup is None:
            return
        # Not a child of root, which a caught signal has usually canceled
        token = CancelToken.detached(caps.cleanup_seconds(), name="cleanup")
        report.phases.append(Phase.CLEANUP)
        outcome, error = await _invoke(Phase.CLEANUP, caps.cleanup, token, ctx)
        report.cleanup_outcome = outcome
        if error is not None and not outcome.is_soft:
            raise CleanupError(Phase.CLEANUP, error) from error


# ─── Module-level default orchestrator ────────────────────────────────

_default: Orchestrator | None = None
_default_lock = threading.Lock()


def default_orchestrator() -> Orchestrator:
    """Return the process-wide orchestrator, creating it on first use."""
    global _default
    with _default_lock:
        if _default is None:
            _default = Orchestrator()
        return _default


def run(unit: object) -> RunReport:
    """Run ``unit`` once with the default orchestrator."""
    return default_orchestrator().run(unit)


def run_worker(unit: WorkerUnit) -> RunReport:
    """Run ``unit`` as a looped worker with the default orchestrator."""
    return default_orchestrator().run_worker(unit)


def set_signals(signals: Iterable[SignalLike]) -> None:
    """Replace the default orchestrator's intercepted signals before a run."""
    default_orchestrator().set_signals(signals)


def get_signals() -> list[signal.Signals]:
    """Signals the default orchestrator intercepts."""
    return default_orchestrator().signals


__all__ = [
    "Orchestrator",
    "default_orchestrator",
    "get_signals",
    "run",
    "run_worker",
    "set_signals",
]
