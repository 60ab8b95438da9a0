"""
test_logging_config.py — Tests for arhub/logging_config.py

Verifies Loguru setup, stdlib logging interception, level control,
noisy-logger capping and production JSON output.

Called by: pytest
Depends on: arhub/logging_config.py
"""

import logging
import os
from unittest.mock import patch

import pytest
from loguru import logger

from arhub.logging_config import setup_logging


@pytest.fixture(autouse=True)
def _clean_loguru():
    """Remove all handlers before/after each test for isolation."""
    logger.remove()
    yield
    logger.remove()


def test_setup_logging_adds_handler():
    assert len(logger._core.handlers) == 0
    setup_logging()
    assert len(logger._core.handlers) > 0


def test_stdlib_logging_intercepted():
    """After setup, getLogger("arhub.*") messages go through Loguru."""
    setup_logging()

    messages = []
    logger.add(lambda m: messages.append(str(m)), format="{message}")

    logging.getLogger("arhub.briefings").warning("briefing cache rebuilt")

    assert any("briefing cache rebuilt" in m for m in messages)


def test_log_level_from_env():
    with patch.dict(os.environ, {"LOG_LEVEL": "WARNING"}):
        setup_logging()

    messages = []
    logger.add(lambda m: messages.append(str(m)), level="WARNING", format="{message}")

    logger.debug("should be filtered")
    logger.warning("should appear")

    assert any("should appear" in m for m in messages)
    assert not any("should be filtered" in m for m in messages)


def test_noisy_loggers_capped():
    setup_logging()
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_context_binding():
    """logger.contextualize() adds request_id to records (used by the request middleware)."""
    records = []
    logger.add(lambda m: records.append(m.record), format="{message}")

    with logger.contextualize(request_id="abc123"):
        logger.info("request log")
    logger.info("outside")

    assert records[-2]["extra"].get("request_id") == "abc123"
    assert "request_id" not in records[-1]["extra"]


def test_production_mode_uses_serialize():
    with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
        with patch("loguru.logger.add") as mock_add:
            setup_logging()
    assert any(c.kwargs.get("serialize") is True for c in mock_add.call_args_list)


def test_development_mode_colorized():
    with patch.dict(os.environ, {"ENVIRONMENT": "development"}):
        with patch("loguru.logger.add") as mock_add:
            setup_logging()
    assert all(not c.kwargs.get("serialize") for c in mock_add.call_args_list)
    assert any(c.kwargs.get("colorize") is True for c in mock_add.call_args_list)
