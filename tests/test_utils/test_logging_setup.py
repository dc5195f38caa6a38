"""Tests for root-logger configuration and the JSON line formatter."""

from __future__ import annotations

import json
import logging

import pytest

from spendsense.config import LoggingConfig
from spendsense.utils.logging import (
    CONSOLE_HANDLER_NAME,
    FILE_HANDLER_NAME,
    JsonLineFormatter,
    configure_logging,
)


@pytest.fixture(autouse=True)
def restore_root():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "spendsense.pipeline.base", logging.INFO, __file__, 1, "Processed %s", ("u001",), None
    )
    record.__dict__.update(extra)
    return record


class TestConfigureLogging:
    def test_console_only(self):
        configure_logging(LoggingConfig(level="WARNING", log_file=""))
        root = logging.getLogger()
        assert [h.get_name() for h in root.handlers] == [CONSOLE_HANDLER_NAME]
        assert root.level == logging.WARNING

    def test_file_handler_creates_parent_dir(self, tmp_path):
        log_file = tmp_path / "logs" / "nested" / "app.log"
        configure_logging(LoggingConfig(level="DEBUG", log_file=str(log_file)))
        names = [h.get_name() for h in logging.getLogger().handlers]
        assert names == [CONSOLE_HANDLER_NAME, FILE_HANDLER_NAME]
        assert log_file.parent.is_dir()

        logging.getLogger("spendsense.test").debug("hello file")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello file" in log_file.read_text(encoding="utf-8")

    def test_reconfigure_replaces_handlers(self):
        configure_logging(LoggingConfig(log_file=""))
        configure_logging(LoggingConfig(log_file=""))
        assert len(logging.getLogger().handlers) == 1

    def test_third_party_loggers_quieted(self):
        configure_logging(LoggingConfig(level="DEBUG", log_file=""))
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_json_format_selected(self):
        configure_logging(LoggingConfig(json_format=True, log_file=""))
        assert isinstance(logging.getLogger().handlers[0].formatter, JsonLineFormatter)


class TestJsonLineFormatter:
    def test_core_fields(self):
        payload = json.loads(JsonLineFormatter().format(_record()))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "spendsense.pipeline.base"
        assert payload["msg"] == "Processed u001"
        assert payload["ts"].endswith("Z")

    def test_extra_fields_promoted(self):
        payload = json.loads(JsonLineFormatter().format(_record(user_id="u001", run_slug="r1")))
        assert payload["user_id"] == "u001"
        assert payload["run_slug"] == "r1"
        assert "args" not in payload
        assert "levelno" not in payload
