"""Pytest configuration."""

import logging
import os

import pytest
from loguru import logger

from rollup_tui.core.settings import Settings


@pytest.fixture(autouse=True)
def caplog(caplog):
    """Make loguru logs visible to pytest caplog."""

    class PropagateHandler(logging.Handler):
        def emit(self, record):
            logging.getLogger(record.name).handle(record)

    handler_id = logger.add(PropagateHandler(), format="{message}")
    yield caplog
    try:
        logger.remove(handler_id)
    except ValueError:
        pass


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Keep the developer's .env and ROLLUP_TUI_* variables out of the tests."""
    for key in list(os.environ):
        if key.startswith("ROLLUP_TUI_"):
            monkeypatch.delenv(key)
    monkeypatch.setattr("rollup_tui.core.settings.load_dotenv", lambda *args, **kwargs: None)
    monkeypatch.setitem(Settings.model_config, "env_file", None)
    yield
