"""Tests for coda.lifecycle.guard."""

from __future__ import annotations

import threading
import time

import pytest

from coda.lifecycle.guard import ExecutionGuard


class TestExecutionGuard:
    """Tests for the run-level mutual exclusion gate."""

    def test_acquire_and_release(self) -> None:
        guard = ExecutionGuard()
        assert not guard.locked

        assert guard.acquire()
        assert guard.locked

        guard.release()
        assert not guard.locked

    def test_acquire_times_out_when_held(self) -> None:
        guard = ExecutionGuard()
        guard.acquire()
        try:
            assert guard.acquire(timeout=0.01) is False
        finally:
            guard.release()

    def test_context_manager_releases_on_error(self) -> None:
        guard = ExecutionGuard()
        with pytest.raises(ValueError):
            with guard:
                assert guard.locked
                raise ValueError("boom")
        assert not guard.locked

    def test_second_holder_waits_for_first(self) -> None:
        guard = ExecutionGuard()
        events: list[str] = []

        def hold(label: str, pause: float) -> None:
            with guard:
                events.append(f"{label}.enter")
                time.sleep(pause)
                events.append(f"{label}.exit")

        first = threading.Thread(target=hold, args=("a", 0.1))
        first.start()
        while not guard.locked:
            time.sleep(0.001)
        second = threading.Thread(target=hold, args=("b", 0))
        second.start()
        first.join(timeout=5)
        second.join(timeout=5)

        assert events == ["a.enter", "a.exit", "b.enter", "b.exit"]
