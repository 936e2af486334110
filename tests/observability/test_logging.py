"""Tests for structured logging configuration.

This module tests the logging module that provides structured
logging for the interop harness.
"""

import json
import logging
import sys
from collections.abc import Iterator

import pytest
import structlog

from quic_interop.observability.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    clear_context()
    configure_logging(log_format="console", log_level="WARNING", force=True)


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_logging_respects_log_level(self) -> None:
        """Test that configure_logging sets the correct log level."""
        configure_logging(log_format="console", log_level="ERROR", force=True)

        assert logging.getLogger().level == logging.ERROR

    def test_unknown_level_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging(log_level="CHATTY", force=True)

    def test_handler_writes_to_stderr(self) -> None:
        configure_logging(log_format="json", log_level="INFO", force=True)

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert handlers[0].stream is sys.stderr  # type: ignore[attr-defined]

    def test_engine_packet_logs_are_quieted(self) -> None:
        configure_logging(log_format="console", log_level="DEBUG", force=True)

        assert logging.getLogger("quic").level == logging.INFO

    def test_environment_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("QUIC_INTEROP_LOG_LEVEL", "error")

        configure_logging(force=True)

        assert logging.getLogger().level == logging.ERROR

    def test_configure_is_idempotent_without_force(self) -> None:
        configure_logging(log_level="ERROR", force=True)
        configure_logging(log_level="DEBUG")

        assert logging.getLogger().level == logging.ERROR


class TestJsonOutput:
    def test_json_lines_carry_event_and_context(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_format="json", log_level="INFO", service_name="interop-test", force=True)
        bind_context(peer="local")

        get_logger("quic_interop.test").info("interop.probe.complete", probe="h9")

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["event"] == "interop.probe.complete"
        assert record["peer"] == "local"
        assert record["probe"] == "h9"
        assert record["service"] == "interop-test"
        assert record["level"] == "info"

    def test_clear_context(self) -> None:
        bind_context(peer="local")
        clear_context()

        assert structlog.contextvars.get_contextvars() == {}
