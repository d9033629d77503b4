"""Tests for structured logging setup."""

from __future__ import annotations

import io
import json
import logging

import structlog

from contest_core.logging import get_logger, setup_logging


class TestSetupLogging:
    def test_json_format(self, capsys):
        setup_logging(level="INFO", log_format="json")
        logger = get_logger("test_json")
        logger.info("contest_joined", ticker="AAPL")

        captured = capsys.readouterr()
        line = json.loads(captured.err.strip())
        assert line["event"] == "contest_joined"
        assert line["ticker"] == "AAPL"
        assert line["level"] == "info"
        assert "timestamp" in line

    def test_console_format(self, capsys):
        setup_logging(level="INFO", log_format="console")
        logger = get_logger("test_console")
        logger.info("hello console", contest_id="spring-cup")

        captured = capsys.readouterr()
        assert "hello console" in captured.err
        assert "spring-cup" in captured.err

    def test_log_level_filtering(self, capsys):
        setup_logging(level="WARNING", log_format="json")
        logger = get_logger("test_level")
        logger.info("should be hidden")
        logger.warning("should appear")

        captured = capsys.readouterr()
        assert "should be hidden" not in captured.err
        assert "should appear" in captured.err

    def test_get_logger_with_context(self, capsys):
        setup_logging(level="INFO", log_format="json")
        logger = get_logger("test_ctx", contest_id="c1", ticker="MSFT")
        logger.info("context test")

        captured = capsys.readouterr()
        line = json.loads(captured.err.strip())
        assert line["contest_id"] == "c1"
        assert line["ticker"] == "MSFT"

    def test_contextvars_binding(self, capsys):
        setup_logging(level="INFO", log_format="json")
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id="abc123")

        logger = get_logger("test_ctxvars")
        logger.info("with context var")

        captured = capsys.readouterr()
        line = json.loads(captured.err.strip())
        assert line["request_id"] == "abc123"

        structlog.contextvars.clear_contextvars()

    def test_custom_stream(self):
        buf = io.StringIO()
        setup_logging(level="INFO", log_format="json", stream=buf)
        get_logger("test_stream").info("to buffer")
        assert json.loads(buf.getvalue().strip())["event"] == "to buffer"

    def test_stdlib_records_rendered(self):
        buf = io.StringIO()
        setup_logging(level="INFO", log_format="json", stream=buf)
        logging.getLogger("plain.stdlib").warning("from stdlib")
        line = json.loads(buf.getvalue().strip())
        assert line["event"] == "from stdlib"
        assert line["level"] == "warning"

    def test_noisy_loggers_quieted(self):
        setup_logging(level="DEBUG", log_format="json")
        assert logging.getLogger("httpx").level == logging.WARNING
