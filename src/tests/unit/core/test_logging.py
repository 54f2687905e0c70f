"""Unit tests for log formatters and logger naming."""

import json
import logging
import sys
from unittest.mock import patch

import pytest

from settingstore.core import logging as logging_module
from settingstore.core.config import Settings
from settingstore.core.logging import ColoredFormatter, JSONFormatter, get_logger, setup_logging


def make_record(msg: str = "Stored setting", level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("settingstore.test", level, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_includes_message_and_extras(self):
        output = JSONFormatter().format(make_record(group="mail", setting="smtp"))
        data = json.loads(output)

        assert data["message"] == "Stored setting"
        assert data["level"] == "INFO"
        assert data["group"] == "mail"
        assert data["setting"] == "smtp"

    def test_includes_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))
        assert data["exception"]["type"] == "ValueError"
        assert data["exception"]["message"] == "boom"


class TestColoredFormatter:
    def test_plain_output_without_tty(self):
        output = ColoredFormatter(use_colors=False).format(make_record(group="mail"))

        assert "INFO" in output
        assert "Stored setting" in output
        assert "group=mail" in output
        assert "\033[" not in output


class TestGetLogger:
    def test_prefixes_foreign_names(self):
        assert get_logger("worker").name == "settingstore.worker"

    def test_keeps_package_names(self):
        assert get_logger("settingstore.services.setting_store").name == "settingstore.services.setting_store"


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def _restore_logging(self, monkeypatch):
        names = ["", "sqlalchemy", "sqlalchemy.engine", "sqlalchemy.pool", "sqlalchemy.dialects", "sqlalchemy.orm"]
        saved = {
            name: (list(logging.getLogger(name).handlers), logging.getLogger(name).level, logging.getLogger(name).propagate)
            for name in names
        }
        monkeypatch.setattr(logging_module, "_LOGGING_CONFIGURED", False)
        yield
        for handler in logging.getLogger().handlers:
            if handler not in saved[""][0]:
                handler.close()
        for name, (handlers, level, propagate) in saved.items():
            log = logging.getLogger(name)
            log.handlers[:] = handlers
            log.setLevel(level)
            log.propagate = propagate

    def test_configures_json_file_logging(self, tmp_path):
        settings_obj = Settings(
            SETTINGSTORE_DATABASE_URL="sqlite+aiosqlite:///:memory:",
            SETTINGSTORE_LOG_FORMAT="json",
            SETTINGSTORE_LOG_LEVEL="debug",
            SETTINGSTORE_LOG_DIR=str(tmp_path),
        )
        with patch.object(logging_module, "get_settings_instance", return_value=settings_obj):
            setup_logging()

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert any(isinstance(h.formatter, JSONFormatter) for h in root.handlers)
        assert any(isinstance(h, logging.FileHandler) for h in root.handlers)
        assert list(tmp_path.glob("settingstore_*.log"))
        assert logging.getLogger("sqlalchemy.engine").level == logging.ERROR
        assert logging_module._LOGGING_CONFIGURED is True

    def test_second_call_is_a_no_op(self, monkeypatch):
        monkeypatch.setattr(logging_module, "_LOGGING_CONFIGURED", True)
        with patch.object(logging_module, "get_settings_instance") as get_settings:
            setup_logging()

        get_settings.assert_not_called()
