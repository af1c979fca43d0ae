"""Tests for coda.lifecycle.capabilities."""

from __future__ import annotations

import signal
from datetime import timedelta

import pytest

from coda.core.errors import CapabilityError
from coda.lifecycle.capabilities import (
    Capabilities,
    Cleanable,
    Initializable,
    Runnable,
    WorkerUnit,
)
from coda.lifecycle.tokens import CancelToken


class RunOnly:
    def run(self, token: CancelToken) -> None:
        pass


class Everything:
    async def init(self, token: CancelToken) -> None:
        pass

    def init_timeout(self) -> float:
        return 2

    async def run(self, token: CancelToken) -> None:
        pass

    def run_timeout(self) -> timedelta:
        return timedelta(seconds=3)

    async def cleanup(self, token: CancelToken) -> None:
        pass

    def cleanup_timeout(self) -> float:
        return 4.5

    def on_signal(self, signum: signal.Signals) -> None:
        pass


class InitWithoutTimeout:
    def init(self, token: CancelToken) -> None:
        pass

    def run(self, token: CancelToken) -> None:
        pass


class CleanupTimeoutOnly:
    def cleanup_timeout(self) -> float:
        return 1

    def run(self, token: CancelToken) -> None:
        pass


class NegativeTimeout:
    def run(self, token: CancelToken) -> None:
        pass

    def run_timeout(self) -> float:
        return -1


class TestProtocols:
    """Tests for runtime protocol checks."""

    def test_runnable(self) -> None:
        assert isinstance(RunOnly(), Runnable)
        assert not isinstance(object(), Runnable)

    def test_paired_protocols_need_both_methods(self) -> None:
        assert isinstance(Everything(), Initializable)
        assert isinstance(Everything(), Cleanable)
        assert not isinstance(InitWithoutTimeout(), Initializable)
        assert not isinstance(CleanupTimeoutOnly(), Cleanable)

    def test_worker_unit(self) -> None:
        assert isinstance(Everything(), WorkerUnit)
        assert not isinstance(RunOnly(), WorkerUnit)


class TestResolve:
    """Tests for Capabilities.resolve()."""

    def test_run_only(self) -> None:
        caps = Capabilities.resolve(RunOnly())

        assert not caps.initializable
        assert not caps.cleanable
        assert caps.run_timeout is None
        assert caps.on_signal is None
        assert caps.run_seconds() is None
        assert caps.names() == []

    def test_all_capabilities(self) -> None:
        unit = Everything()
        caps = Capabilities.resolve(unit)

        assert caps.unit is unit
        assert caps.initializable and caps.cleanable
        assert caps.init_seconds() == 2.0
        assert caps.run_seconds() == 3.0
        assert caps.cleanup_seconds() == 4.5
        assert caps.names() == ["init", "cleanup", "run_timeout", "on_signal"]

    def test_half_pairs_are_ignored(self) -> None:
        assert not Capabilities.resolve(InitWithoutTimeout()).initializable
        assert not Capabilities.resolve(CleanupTimeoutOnly()).cleanable

    def test_missing_run(self) -> None:
        with pytest.raises(CapabilityError, match="object is not runnable"):
            Capabilities.resolve(object())

    def test_non_callable_run(self) -> None:
        class Broken:
            run = "not a method"

        with pytest.raises(CapabilityError, match="missing run"):
            Capabilities.resolve(Broken())

    def test_capability_error_is_type_error(self) -> None:
        with pytest.raises(TypeError):
            Capabilities.resolve(42)


class TestWorkerRequirement:
    """Tests for require_run_timeout()."""

    def test_missing_run_timeout(self) -> None:
        caps = Capabilities.resolve(RunOnly())
        with pytest.raises(CapabilityError, match="RunOnly cannot run as a worker"):
            caps.require_run_timeout()

    def test_present_run_timeout(self) -> None:
        Capabilities.resolve(Everything()).require_run_timeout()


class TestDurations:
    """Tests for duration validation."""

    def test_negative_duration_rejected(self) -> None:
        caps = Capabilities.resolve(NegativeTimeout())
        with pytest.raises(CapabilityError, match="negative duration"):
            caps.run_seconds()

    def test_zero_duration_allowed(self) -> None:
        class ZeroTimeout(RunOnly):
            def run_timeout(self) -> float:
                return 0

        assert Capabilities.resolve(ZeroTimeout()).run_seconds() == 0.0

    def test_durations_read_at_call_time(self) -> None:
        class Adjustable(RunOnly):
            timeout = 1.0

            def run_timeout(self) -> float:
                return self.timeout

        unit = Adjustable()
        caps = Capabilities.resolve(unit)
        unit.timeout = 7.0
        assert caps.run_seconds() == 7.0

    def test_phase_durations_without_timeout_capability(self) -> None:
        caps = Capabilities.resolve(RunOnly())
        with pytest.raises(CapabilityError, match="RunOnly has no init_timeout"):
            caps.init_seconds()
        with pytest.raises(CapabilityError, match="RunOnly has no cleanup_timeout"):
            caps.cleanup_seconds()
        assert caps.run_seconds() is None
