"""Tests for logging setup and formatters."""

import json
import logging

import pytest

from trashcan.config import LoggingSettings
from trashcan.exceptions import ConfigurationError
from trashcan.log import JsonFormatter, TextFormatter, setup_logging


def _record(msg: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("trashcan.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def clean_root():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        if handler not in saved_handlers:
            root.removeHandler(handler)
    root.setLevel(saved_level)


class TestJsonFormatter:
    def test_includes_extra_fields(self) -> None:
        line = JsonFormatter().format(_record(key="abc", tier="expiring"))
        payload = json.loads(line)
        assert payload["msg"] == "hello"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "trashcan.test"
        assert payload["key"] == "abc"
        assert payload["tier"] == "expiring"

    def test_non_serialisable_extra(self) -> None:
        payload = json.loads(JsonFormatter().format(_record(obj=object())))
        assert payload["obj"].startswith("<object object")


class TestTextFormatter:
    def test_appends_extras(self) -> None:
        line = TextFormatter().format(_record(count=3))
        assert "hello" in line
        assert line.endswith("count=3")


class TestSetupLogging:
    def test_installs_single_handler(self, clean_root) -> None:
        before = len(clean_root.handlers)
        setup_logging(LoggingSettings(level="DEBUG", format="json"))
        setup_logging(LoggingSettings(level="DEBUG", format="json"))
        assert len(clean_root.handlers) == before + 1
        assert clean_root.level == logging.DEBUG
        assert isinstance(clean_root.handlers[-1].formatter, JsonFormatter)

    def test_text_format(self, clean_root) -> None:
        setup_logging(LoggingSettings(level="WARNING", format="text"))
        assert isinstance(clean_root.handlers[-1].formatter, TextFormatter)

    def test_unknown_level_rejected(self, clean_root) -> None:
        with pytest.raises(ConfigurationError, match="Unknown log level"):
            setup_logging(LoggingSettings(level="LOUD"))
