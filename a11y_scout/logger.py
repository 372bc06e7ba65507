"""Logging setup for a11y-scout.

Log records go to stderr so that reports printed on stdout stay parseable;
``--log-file`` adds a rotating file next to it.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

LOGGER_NAME: Final[str] = "A11yScout"
_DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def _handler(stream_or_file: Union[Path, str, None], fmt: str) -> logging.Handler:
    if stream_or_file is None:
        handler: logging.Handler = logging.StreamHandler(sys.stderr)
    else:
        handler = RotatingFileHandler(
            filename=str(stream_or_file),
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def init_logging(
    level: Union[int, str] = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
) -> logging.Logger:
    """Replace the project logger's handlers: stderr, plus ``log_file`` when given."""
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)
    lg.handlers.clear()
    lg.addHandler(_handler(None, log_format))
    if log_file is not None:
        lg.addHandler(_handler(log_file, log_format))
    lg.propagate = False
    return lg


logger: logging.Logger = logging.getLogger(LOGGER_NAME)

__all__ = ["LOGGER_NAME", "init_logging", "logger"]
