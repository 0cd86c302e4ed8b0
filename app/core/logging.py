"""Structured logging configuration.

Configures the root logger with a structured format including timestamp,
level, and module name.  The log level is controlled by ``settings.LOG_LEVEL``.
"""

import logging
import sys

from app.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Chatty client libraries used by supabase-py / uvicorn
NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "hpack", "uvicorn.access")


def setup_logging(level: str | None = None) -> None:
    """Configure structured logging for the application.

    Sets the root logger level (``level`` or ``settings.LOG_LEVEL``) and
    installs a single ``StreamHandler`` writing to *stdout*.  Repeated calls
    replace the handler instead of stacking duplicates.
    """
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(
        logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")
    )

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
