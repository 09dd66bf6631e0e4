"""Logging configuration for the ``expense_import`` package.

Two helpers:

- ``configure_logging(...)``: attach one ``StreamHandler`` to the package
  logger (``"expense_import"``). Entrypoints such as the CLI call it once.
- ``get_logger(name)``: return a child logger. Until configuration runs, the
  package logger carries a ``NullHandler`` so library use stays silent.

Library modules never attach handlers themselves.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "expense_import"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_LEVEL_ENV = "EXPENSE_IMPORT_LOG_LEVEL"

_configured_handler: logging.Handler | None = None


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if level is None:
        level = os.getenv(_LEVEL_ENV)
    if isinstance(level, str):
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = logging.getLevelName(name)
        if isinstance(numeric, int):
            return numeric
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> logging.Logger:
    """Configure the package logger once and return it.

    ``level`` accepts an int or a level name; when ``None`` it is read from
    ``EXPENSE_IMPORT_LOG_LEVEL`` and defaults to ``INFO``. Repeated calls only
    adjust the level of the already-installed handler.
    """

    global _configured_handler
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    resolved = _parse_level(level)

    if _configured_handler is not None:
        _configured_handler.setLevel(resolved)
        logger.setLevel(resolved)
        return logger

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    logger.propagate = False

    _configured_handler = handler
    return logger


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _configured_handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
