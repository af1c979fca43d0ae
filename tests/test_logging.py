"""Tests for coda.core.logging."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from coda.core.logging import (
    CodaLogger,
    ExecutionContext,
    _merge_execution_context,
    _redact_sensitive,
    configure_logging,
    get_current_context,
    get_logger,
    with_context,
)


class TestExecutionContext:
    """Tests for ExecutionContext."""

    def test_generates_run_id(self) -> None:
        assert ExecutionContext().run_id != ExecutionContext().run_id

    def test_to_dict_omits_unset_fields(self) -> None:
        ctx = ExecutionContext(run_id="r1")
        assert ctx.to_dict() == {"run_id": "r1", "mode": "single"}

    def test_with_phase_and_iteration(self) -> None:
        ctx = ExecutionContext(run_id="r1", mode="worker")
        derived = ctx.with_phase("run").with_iteration(3)

        assert derived.to_dict() == {
            "run_id": "r1",
            "mode": "worker",
            "phase": "run",
            "iteration": 3,
        }
        assert ctx.phase is None

    def test_with_context_restores_previous(self) -> None:
        outer = ExecutionContext(run_id="outer")
        inner = outer.with_phase("init")

        assert get_current_context() is None
        with with_context(outer):
            with with_context(inner):
                assert get_current_context() is inner
            assert get_current_context() is outer
        assert get_current_context() is None


class TestProcessors:
    """Tests for the custom structlog processors."""

    def test_sensitive_fields_redacted(self) -> None:
        result = _redact_sensitive(
            None,
            "info",
            {"event": "x", "api_key": "sk-1", "nested": {"password": "p", "user": "u"}},
        )
        assert result["api_key"] == "[REDACTED]"
        assert result["nested"] == {"password": "[REDACTED]", "user": "u"}
        assert result["event"] == "x"

    def test_token_fields_not_redacted(self) -> None:
        result = _redact_sensitive(None, "info", {"token": "root"})
        assert result["token"] == "root"

    def test_merge_execution_context(self) -> None:
        with with_context(ExecutionContext(run_id="r1", phase="run")):
            result = _merge_execution_context(None, "info", {"event": "x", "phase": "explicit"})

        assert result["run_id"] == "r1"
        assert result["phase"] == "explicit"

    def test_merge_execution_context_without_context(self) -> None:
        assert _merge_execution_context(None, "info", {"event": "x"}) == {"event": "x"}


class TestCodaLogger:
    """Tests for the component logger wrapper."""

    def test_bind_and_unbind(self) -> None:
        logger = get_logger("orchestrator", unit="Job")
        bound = logger.bind(run_id="r1")

        assert isinstance(bound, CodaLogger)
        assert bound._context == {"component": "orchestrator", "unit": "Job", "run_id": "r1"}
        assert bound.unbind("unit")._context == {"component": "orchestrator", "run_id": "r1"}
        assert logger._context == {"component": "orchestrator", "unit": "Job"}


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_both_requires_file(self) -> None:
        with pytest.raises(ValueError, match="file_path is required"):
            configure_logging(format="both")

    def test_json_to_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "coda.log"
        configure_logging(level="INFO", format="json", file_path=log_file)

        with with_context(ExecutionContext(run_id="r1", mode="worker").with_iteration(2)):
            get_logger("orchestrator").info("run.started", password="hunter2")
        get_logger("orchestrator").debug("filtered.out")
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = log_file.read_text().splitlines()
        assert len(lines) == 1
        entry = json.loads(lines[0])
        assert entry["event"] == "run.started"
        assert entry["component"] == "orchestrator"
        assert entry["run_id"] == "r1"
        assert entry["iteration"] == 2
        assert entry["password"] == "[REDACTED]"
        assert entry["level"] == "info"
        assert "timestamp" in entry

    def test_sets_root_level(self) -> None:
        configure_logging(level="ERROR", format="console")
        assert logging.getLogger().level == logging.ERROR
        assert len(logging.getLogger().handlers) == 1

    def test_both_writes_console_and_json_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "coda.log"
        configure_logging(level="INFO", format="both", file_path=log_file)

        get_logger("signals").warning("signals.unavailable", reason="thread")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert len(logging.getLogger().handlers) == 2
        entry = json.loads(log_file.read_text().splitlines()[0])
        assert entry["event"] == "signals.unavailable"
        assert entry["reason"] == "thread"

    def test_unknown_level(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging(level="LOUD")  # type: ignore[arg-type]
