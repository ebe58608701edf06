"""Logging setup for the upstrap command line.

Library modules only call ``logging.getLogger(__name__)``; handlers are attached
here, to the ``upstrap`` package logger, so embedding applications keep control
of the root logger.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Dict, Optional

PACKAGE_LOGGER = "upstrap"
LOG_LEVEL_ENV_VAR = "UPSTRAP_LOG"

_HANDLER_TAG_ATTR = "_upstrap_handler"

_LEVEL_MAP: Dict[str, int] = {
    "TRACE": logging.DEBUG,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

CONSOLE_FMT = "%(levelname)s | %(message)s"
FILE_FMT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"


def parse_level(level: Optional[str]) -> int:
    """Convert a level name (any case) to its logging constant, defaulting to INFO."""
    if not level:
        return logging.INFO
    return _LEVEL_MAP.get(str(level).strip().upper(), logging.INFO)


def default_level() -> str:
    return os.environ.get(LOG_LEVEL_ENV_VAR, "INFO")


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """Attach console (and optionally rotating file) handlers to the package logger.

    Safe to call repeatedly: handlers from a previous call are replaced, handlers
    added by anyone else are left alone.

    Args:
        level: Level name  # (defaults to $UPSTRAP_LOG, then INFO)
        log_file: Optional log file path  # (parent directories are created)

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    level_int = parse_level(level if level is not None else default_level())
    logger.setLevel(level_int)
    _remove_our_handlers(logger)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level_int)
    console.setFormatter(logging.Formatter(CONSOLE_FMT))
    _tag_handler(console)
    logger.addHandler(console)

    if log_file:
        parent = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(parent, exist_ok=True)
        fh = RotatingFileHandler(log_file, maxBytes=2 * 1024 * 1024, backupCount=3, encoding="utf-8")
        fh.setLevel(level_int)
        fh.setFormatter(logging.Formatter(FILE_FMT, datefmt=DATEFMT))
        _tag_handler(fh)
        logger.addHandler(fh)

    return logger


def _tag_handler(handler: logging.Handler) -> None:
    setattr(handler, _HANDLER_TAG_ATTR, True)


def _remove_our_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_TAG_ATTR, False):
            logger.removeHandler(handler)
            handler.close()
