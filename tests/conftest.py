"""Pytest fixtures for coda tests."""

from __future__ import annotations

import logging
import signal
from collections.abc import Generator

import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset logging state before and after each test.

    This ensures test isolation for logging configuration.
    """
    from coda.cli import helpers

    helpers.reset_logging_state()
    structlog.reset_defaults()

    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    helpers.reset_logging_state()
    structlog.reset_defaults()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in original_handlers:
        root_logger.addHandler(handler)


@pytest.fixture
def usr1_safety() -> Generator[None, None, None]:
    """Keep SIGUSR1 from terminating the test process.

    Tests that deliver SIGUSR1 to themselves rely on coda's listener to
    catch it. A no-op Python handler underneath means a missed install
    fails the test instead of killing pytest; the original handler is
    restored afterwards.
    """
    original = signal.getsignal(signal.SIGUSR1)
    signal.signal(signal.SIGUSR1, lambda signum, frame: None)
    yield
    signal.signal(signal.SIGUSR1, original)


@pytest.fixture
def fresh_default_orchestrator() -> Generator[None, None, None]:
    """Isolate tests that touch the module-level default orchestrator."""
    from coda.lifecycle import orchestrator

    saved = orchestrator._default
    orchestrator._default = None
    yield
    orchestrator._default = saved
