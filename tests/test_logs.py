"""tests/test_logs.py — structlog wiring for JSON and console output."""
import json
import logging

import pytest
import structlog

from oneshot.config import Config
from oneshot.logs import configure_from, configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    level = root.level
    yield
    structlog.reset_defaults()
    # Drop the stdout handler basicConfig installed; pytest's own handlers are subclasses
    for handler in root.handlers[:]:
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
    root.setLevel(level)


class TestConfigureLogging:
    def test_json_lines(self, capsys):
        configure_logging("INFO", "json")
        structlog.get_logger("oneshot.test").info("request_dispatched", host="example.com", port=80)

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record['event'] == "request_dispatched"
        assert record['level'] == "info"
        assert record['logger'] == "oneshot.test"
        assert record['host'] == "example.com"
        assert 'timestamp' in record

    def test_level_filters(self, capsys):
        configure_logging("warning", "json")
        logger = structlog.get_logger("oneshot.test.level")
        logger.info("dropped")
        logger.warning("kept")

        out = capsys.readouterr().out
        assert "dropped" not in out
        assert "kept" in out

    def test_console_renderer(self, capsys):
        configure_logging("DEBUG", "console")
        structlog.get_logger("oneshot.test.console").debug("connection_opened", connection_id=3)
        out = capsys.readouterr().out
        assert "connection_opened" in out
        assert "connection_id" in out

    def test_configure_from_config(self, tmp_path, capsys, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text("logging:\n  level: ERROR\n  format: json\n")
        configure_from(Config(path))

        logger = structlog.get_logger("oneshot.test.config")
        logger.warning("dropped")
        logger.error("kept")
        out = capsys.readouterr().out
        assert "dropped" not in out
        assert json.loads(out.strip().splitlines()[-1])['event'] == "kept"
