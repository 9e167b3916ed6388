import logging

import pytest
import structlog

from quotealert.utils.log import setup_logging


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)
    root = logging.getLogger()
    level = root.level
    yield
    for h in list(root.handlers):
        if isinstance(h.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(h)
    root.setLevel(level)
    structlog.reset_defaults()


def _renderer():
    (handler,) = logging.getLogger().handlers
    return handler.formatter.processors[-1]


def test_defaults_to_json_at_info():
    setup_logging()
    assert logging.getLogger().level == logging.INFO
    assert isinstance(_renderer(), structlog.processors.JSONRenderer)


def test_reads_level_and_format_from_env(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FORMAT", "Console")
    setup_logging()
    assert logging.getLogger().level == logging.DEBUG
    assert isinstance(_renderer(), structlog.dev.ConsoleRenderer)


def test_arguments_win_over_env(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    setup_logging(level="WARNING", log_format="json")
    assert logging.getLogger().level == logging.WARNING


def test_unknown_values_fall_back(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    monkeypatch.setenv("LOG_FORMAT", "xml")
    setup_logging()
    assert logging.getLogger().level == logging.INFO
    assert isinstance(_renderer(), structlog.processors.JSONRenderer)


def test_events_render_as_json(capsys):
    setup_logging()
    structlog.get_logger().info("quote_fetched", symbol="PETR4", price="12.50")
    err = capsys.readouterr().err
    assert '"event": "quote_fetched"' in err
    assert '"symbol": "PETR4"' in err
