"""
Tests for structured logging setup
"""

import json
import logging

import pytest
import structlog

from invoice_matcher.services.monitoring import ServiceJsonFormatter, setup_logging


@pytest.fixture
def configured_logging():
    handlers = []

    def _setup(**kwargs):
        handler = setup_logging(**kwargs)
        handlers.append(handler)
        return handler

    yield _setup

    root = logging.getLogger()
    for handler in handlers:
        root.removeHandler(handler)
    structlog.reset_defaults()


class TestSetupLogging:

    def test_json_handler(self, configured_logging):
        handler = configured_logging(level="DEBUG", json_output=True, environment="test")

        assert isinstance(handler.formatter, ServiceJsonFormatter)
        assert logging.getLogger().level == logging.DEBUG

    def test_json_line_carries_context(self, configured_logging, capsys):
        configured_logging(level="INFO", json_output=True, environment="test")
        log = structlog.get_logger("tests.logging")

        with structlog.contextvars.bound_contextvars(batch_id="b-1"):
            log.info("batch_matching_started", line_items=3)

        lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
        record = json.loads(lines[-1])
        assert record["message"] == "batch_matching_started"
        assert record["line_items"] == 3
        assert record["batch_id"] == "b-1"
        assert record["service"] == "carrier-invoice-matcher"
        assert record["environment"] == "test"

    def test_console_mode_has_no_json_formatter(self, configured_logging):
        handler = configured_logging(json_output=False)
        assert not isinstance(handler.formatter, ServiceJsonFormatter)
