"""Unit tests for structlog configuration."""

from __future__ import annotations

import json

import pytest
import structlog
from opentelemetry.sdk.trace import TracerProvider

from eks_authmap.logging import add_trace_context, configure_logging


class TestAddTraceContext:
    """Tests for the add_trace_context processor."""

    def test_no_active_span(self) -> None:
        event_dict = add_trace_context(None, "info", {"event": "x"})

        assert "trace_id" not in event_dict
        assert "span_id" not in event_dict

    def test_active_span(self) -> None:
        tracer = TracerProvider().get_tracer("test")

        with tracer.start_as_current_span("op") as span:
            event_dict = add_trace_context(None, "info", {"event": "x"})
            ctx = span.get_span_context()

        assert event_dict["trace_id"] == format(ctx.trace_id, "032x")
        assert event_dict["span_id"] == format(ctx.span_id, "016x")


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_output_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_level="INFO", json_output=True)

        structlog.get_logger("test").info("identity_added", arn="arn:aws:iam::1:role/r")

        captured = capsys.readouterr()
        assert captured.out == ""
        record = json.loads(captured.err.strip())
        assert record["event"] == "identity_added"
        assert record["level"] == "info"
        assert record["arn"] == "arn:aws:iam::1:role/r"
        assert "timestamp" in record

    def test_level_filters(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_level="warning")

        structlog.get_logger("test").info("hidden")
        structlog.get_logger("test").warning("shown")

        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "shown" in err

    def test_unknown_level_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging(log_level="LOUD")
