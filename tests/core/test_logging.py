"""
Tests for structured logging configuration and JSON formatter.
"""
import json
import logging
import sys
from unittest.mock import patch

from aptitude.core.logging_config import (
    JSONFormatter,
    get_logger,
    session_id_context,
    setup_logging,
)


def _record(level=logging.INFO, msg="Test message", **extra):
    record = logging.LogRecord(
        name="test_logger",
        level=level,
        pathname="engine.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for the JSONFormatter class."""

    def test_basic_log_entry(self):
        """Basic entries carry timestamp, level, logger and message."""
        log_entry = json.loads(JSONFormatter().format(_record()))

        assert "timestamp" in log_entry
        assert log_entry["level"] == "INFO"
        assert log_entry["logger"] == "test_logger"
        assert log_entry["message"] == "Test message"
        assert "session_id" not in log_entry
        assert "source" not in log_entry

    def test_session_id_from_context(self):
        """session_id is included when set in context."""
        token = session_id_context.set("session-123")
        try:
            log_entry = json.loads(JSONFormatter().format(_record()))
        finally:
            session_id_context.reset(token)

        assert log_entry["session_id"] == "session-123"

    def test_structured_extra_fields(self):
        record = _record(item_id=17, theta=0.42, standard_error=0.31)
        log_entry = json.loads(JSONFormatter().format(record))

        assert log_entry["item_id"] == 17
        assert log_entry["theta"] == 0.42
        assert log_entry["standard_error"] == 0.31

    def test_error_includes_source(self):
        log_entry = json.loads(JSONFormatter().format(_record(level=logging.ERROR)))
        assert log_entry["source"] == "engine.py:42"

    def test_exception_info(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        log_entry = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in log_entry["exception"]


class TestSetupLogging:
    """Tests for the setup_logging function."""

    @patch("aptitude.core.logging_config.settings")
    def test_production_uses_json_formatter(self, mock_settings):
        mock_settings.ENV = "production"
        mock_settings.DEBUG = False
        mock_settings.LOG_LEVEL = "INFO"

        with patch("logging.config.dictConfig") as mock_dictconfig:
            setup_logging()

            call_args = mock_dictconfig.call_args[0][0]
            assert call_args["handlers"]["console"]["formatter"] == "json"
            assert call_args["root"]["level"] == logging.INFO

    @patch("aptitude.core.logging_config.settings")
    def test_development_uses_default_formatter(self, mock_settings):
        mock_settings.ENV = "development"
        mock_settings.DEBUG = True
        mock_settings.LOG_LEVEL = "DEBUG"

        with patch("logging.config.dictConfig") as mock_dictconfig:
            setup_logging()

            call_args = mock_dictconfig.call_args[0][0]
            assert call_args["handlers"]["console"]["formatter"] == "default"
            selection = call_args["loggers"]["aptitude.core.cat.item_selection"]
            assert selection["level"] == logging.DEBUG


class TestGetLogger:
    def test_get_logger_returns_named_logger(self):
        logger = get_logger("aptitude.test")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "aptitude.test"
