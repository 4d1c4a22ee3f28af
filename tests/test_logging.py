"""Tests for structured logging configuration."""

import json
import logging
import sys
from unittest.mock import patch

from lmproxy.app.core.logging import (
    ContextFilter,
    JSONFormatter,
    get_log_context,
    get_logger,
    get_logging_config,
)


def _record(msg="Test message", **extra):
    record = logging.LogRecord(
        name="lmproxy.test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Test JSON formatter for structured logging."""

    def test_basic_json_format(self):
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "lmproxy.test"
        assert data["message"] == "Test message"
        assert "timestamp" in data
        assert data["source"]["file"] == "test.py"
        assert data["source"]["line"] == 1

    def test_context_fields(self):
        record = _record(request_id="req-1", tool="lm_list_devices", account="acme", duration_ms=12.5)

        data = json.loads(JSONFormatter().format(record))

        assert data["request_id"] == "req-1"
        assert data["tool"] == "lm_list_devices"
        assert data["account"] == "acme"
        assert data["duration_ms"] == 12.5

    def test_unset_context_omitted(self):
        record = _record()
        ContextFilter().filter(record)

        data = json.loads(JSONFormatter().format(record))

        assert "request_id" not in data
        assert "extra" not in data

    def test_custom_extra_grouped(self):
        data = json.loads(JSONFormatter().format(_record(formatted_filter='name:"x"')))

        assert data["extra"] == {"formatted_filter": 'name:"x"'}

    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert any("ValueError: boom" in line for line in data["exception"])


class TestContextFilter:
    def test_adds_defaults(self):
        record = _record()

        assert ContextFilter().filter(record) is True
        assert record.request_id is None
        assert record.rate_limit_key is None

    def test_keeps_existing(self):
        record = _record(tool="lm_get_alert")
        ContextFilter().filter(record)

        assert record.tool == "lm_get_alert"


class TestLoggingConfig:
    def test_json_format(self):
        with patch("lmproxy.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "json"
            mock_settings.log_level = "debug"
            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["loggers"]["lmproxy"]["level"] == "DEBUG"

    def test_structured_format(self):
        with patch("lmproxy.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "structured"
            mock_settings.log_level = "INFO"
            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "structured"
        assert "json" not in config["formatters"]

    def test_get_logger_default_name(self):
        assert get_logger().name == "lmproxy"


class TestLogContext:
    def test_drops_none_values(self):
        context = get_log_context(request_id="abc", tool="lm_list_alerts", attempt=2)

        assert context == {"request_id": "abc", "tool": "lm_list_alerts", "attempt": 2}
