"""Tests for the example work units in coda.demo."""

from __future__ import annotations

import signal

import pytest

from coda.core.errors import Cancelled
from coda.demo import MinimalExample, RunExample, WorkerExample
from coda.lifecycle.capabilities import Capabilities
from coda.lifecycle.models import Outcome, Phase
from coda.lifecycle.orchestrator import Orchestrator
from coda.lifecycle.tokens import CancelToken


class TestCapabilities:
    """The examples cover the capability combinations."""

    def test_minimal_is_run_only(self) -> None:
        assert Capabilities.resolve(MinimalExample()).names() == []

    def test_run_example_has_everything(self) -> None:
        caps = Capabilities.resolve(RunExample(init_duration=1, cleanup_duration=2, timeout=6))
        assert caps.names() == ["init", "cleanup", "run_timeout", "on_signal"]
        assert caps.init_seconds() == 2
        assert caps.run_seconds() == 6
        assert caps.cleanup_seconds() == 3

    def test_on_signal_records(self) -> None:
        unit = RunExample()
        unit.on_signal(signal.SIGTERM)
        assert unit.caught == [signal.SIGTERM]


class TestOrchestrated:
    """The examples driven through a real orchestrator."""

    def test_minimal(self) -> None:
        report = Orchestrator().run(MinimalExample(duration=0.01))
        assert report.run_outcome is Outcome.SUCCESS

    def test_run_example_times_out_into_cleanup(self) -> None:
        unit = RunExample(init_duration=0.01, duration=10, cleanup_duration=0.01, timeout=0.05)
        report = Orchestrator().run(unit)

        assert report.phases == [Phase.INIT, Phase.RUN, Phase.CLEANUP]
        assert report.run_outcome is Outcome.DEADLINE_EXCEEDED
        assert report.cleanup_outcome is Outcome.SUCCESS

    def test_worker_stops_itself(self) -> None:
        unit = WorkerExample(
            init_duration=0.01,
            duration=0.01,
            cleanup_duration=0.01,
            iterations=3,
        )
        report = Orchestrator().run_worker(unit)

        assert unit.counter == 3
        assert report.iterations == 3
        assert report.run_outcome is Outcome.CANCELLED

    @pytest.mark.asyncio
    async def test_nap_raises_when_cancelled(self) -> None:
        token = CancelToken("run")
        token.cancel()
        with pytest.raises(Cancelled):
            await MinimalExample(duration=10).run(token)
