"""Tests for logging setup and structured events."""

import json
import logging

import pytest

from punchtrunk.logging_config import JsonLogFormatter, get_logger, log_event, setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("punchtrunk").setLevel(logging.NOTSET)


class TestSetupLogging:
    def test_levels(self):
        assert setup_logging(verbose=True).level == logging.DEBUG
        assert setup_logging(quiet=True).level == logging.ERROR
        assert setup_logging().level == logging.INFO

    def test_json_handler(self):
        setup_logging(json_logs=True)
        handlers = logging.getLogger().handlers
        assert any(isinstance(h.formatter, JsonLogFormatter) for h in handlers)

    def test_get_logger_namespace(self):
        assert get_logger("orchestrator").name == "punchtrunk.orchestrator"
        assert get_logger("punchtrunk.cache").name == "punchtrunk.cache"
        assert get_logger().name == "punchtrunk"


class TestLogEvent:
    def test_message_and_fields(self, caplog):
        logger = get_logger("test")
        with caplog.at_level(logging.INFO, logger="punchtrunk"):
            log_event(logger, logging.INFO, "stage.finish", phase="format", status="succeeded")
        (record,) = caplog.records
        assert record.getMessage() == "stage.finish phase=format status=succeeded"
        assert record.event == "stage.finish"
        assert record.phase == "format"

    def test_json_formatter_includes_fields(self):
        record = logging.makeLogRecord(
            {"name": "punchtrunk.x", "levelname": "INFO", "msg": "hello", "event": "run.start", "phase": "fmt"}
        )
        payload = json.loads(JsonLogFormatter().format(record))
        assert payload["message"] == "hello"
        assert payload["event"] == "run.start"
        assert payload["phase"] == "fmt"
        assert payload["level"] == "info"
