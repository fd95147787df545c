"""Logging setup for the wbstock CLI.

Modules only ask for a named logger. Handlers are attached once, by the CLI,
through :func:`configure_logging`; library callers keep their own setup.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

ROOT_LOGGER = "wbstock"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name``; no handlers, no filesystem access."""
    return logging.getLogger(name)


def configure_logging(name: str = ROOT_LOGGER) -> logging.Logger:
    """Attach stderr output, plus a rotating file when ``WBSTOCK_LOG_DIR`` is set.

    Safe to call more than once. stdout stays free for the JSON result.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_dir = (os.getenv("WBSTOCK_LOG_DIR") or "").strip()
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, "wbstock.log"),
            maxBytes=1_000_000,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
