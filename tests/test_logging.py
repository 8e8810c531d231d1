"""Tests for the structured logging system (overtime_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from overtime_kernel.domain.overtime import OvertimeSessionStatus
from overtime_kernel.exceptions import DailyLimitExceededError, OvertimeRequestNotFoundError
from overtime_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "overtime_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("session_refreshed", extra={"checked": 3, "status": "ok"})

        record = _parse_log(stream)
        assert record["checked"] == 3
        assert record["status"] == "ok"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(correlation_id="abc-123", organization_id="org-1", actor_id="worker-1")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["organization_id"] == "org-1"
        assert record["actor_id"] == "worker-1"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_kernel_exception_code_extracted(self):
        """Kernel exceptions carry a .code attribute and structured fields."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        request_id = str(uuid4())

        try:
            raise OvertimeRequestNotFoundError(request_id)
        except OvertimeRequestNotFoundError:
            get_logger("test").error("request_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "OVERTIME_REQUEST_NOT_FOUND"
        assert record["exc_type"] == "OvertimeRequestNotFoundError"
        assert record["exc_request_id"] == request_id

    def test_decimal_exception_fields_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise DailyLimitExceededError("worker-1", Decimal("10.00"), Decimal("3.00"), Decimal("12"))
        except DailyLimitExceededError:
            get_logger("test").warning("cap", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "DAILY_LIMIT_EXCEEDED"
        assert record["exc_hours_today"] == "10.00"
        assert record["exc_daily_max_hours"] == "12"

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "session_id" not in record

    def test_uuid_enum_and_decimal_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info(
            "with_values",
            extra={
                "overtime_session_id": uid,
                "hours_used": Decimal("1.51"),
                "session_status": OvertimeSessionStatus.ACTIVE,
            },
        )

        record = _parse_log(stream)
        assert record["overtime_session_id"] == str(uid)
        assert record["hours_used"] == "1.51"
        assert record["session_status"] == "ACTIVE"

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # INFO is the default level, so the debug line is dropped
        assert len(logs) == 2
        for record in logs:
            assert {"ts", "level", "logger", "message"} <= set(record)


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", request_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "request_id": "y"}

    def test_unknown_field_rejected(self):
        with pytest.raises(KeyError):
            LogContext.set(event_id="nope")

    def test_none_values_ignored(self):
        LogContext.set(correlation_id="x", session_id=None)
        assert LogContext.get_all() == {"correlation_id": "x"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(correlation_id="outer")
        with LogContext.bind(correlation_id="inner"):
            assert LogContext.get_all()["correlation_id"] == "inner"
        assert LogContext.get_all()["correlation_id"] == "outer"

    def test_bind_restores_none(self):
        """bind() restores to None if there was no previous value."""
        assert "session_id" not in LogContext.get_all()
        with LogContext.bind(session_id="temp"):
            assert LogContext.get_all()["session_id"] == "temp"
        assert "session_id" not in LogContext.get_all()

    def test_all_fields(self):
        LogContext.set(
            correlation_id="c",
            organization_id="o",
            actor_id="a",
            operation="start_session",
            request_id="r",
            session_id="s",
        )
        ctx = LogContext.get_all()
        assert len(ctx) == 6
        assert ctx["operation"] == "start_session"


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op
        assert len(logging.getLogger("overtime_kernel").handlers) == 1

    def test_get_logger_returns_child(self):
        assert get_logger("services.session").name == "overtime_kernel.services.session"

    def test_logger_hierarchy(self):
        """Child loggers inherit the overtime_kernel root config."""
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "overtime_kernel.deep.nested.module"
