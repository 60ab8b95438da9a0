"""
logging_config.py — Centralized Logging Configuration for ARHub

Sets up Loguru as the single logging backend. Intercepts Python's stdlib
logging module so every getLogger("arhub.*") call in services, routers
and the scheduler is routed through Loguru.

Business Rules:
- All logs go through Loguru (no direct print() outside scripts)
- JSON lines when ENVIRONMENT=production, colorized text otherwise
- LOG_LEVEL env var sets the minimum level (default INFO)
- Third-party chatter (httpx, uvicorn.access, sqlalchemy) capped at WARNING

Called by: arhub/main.py (lifespan), scripts/*.py
Depends on: loguru
"""

import logging
import os
import sys

from loguru import logger

_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine")


def setup_logging() -> None:
    """Configure Loguru and intercept stdlib logging.

    Call once at startup, before anything else logs.
    """
    logger.remove()

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    is_production = os.getenv("ENVIRONMENT", "").lower() == "production"

    if is_production:
        logger.add(
            sys.stdout,
            level=log_level,
            format="{message}",
            serialize=True,
        )
    else:
        logger.add(
            sys.stdout,
            level=log_level,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "{message}"
            ),
            colorize=True,
        )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.info("Logging configured", level=log_level, production=is_production)


class _InterceptHandler(logging.Handler):
    """Route stdlib logging records to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip frames from stdlib logging internals so Loguru reports the caller
        frame, depth = logging.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )
