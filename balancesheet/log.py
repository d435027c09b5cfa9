"""
Logging helpers for balancesheet.

Purpose
-------
Every component takes an optional ``logger`` in its constructor and
falls back to a namespaced module logger from :func:`get_logger`.
Handlers are attached only by :func:`configure_logging`, which the CLI
calls with the level from :class:`~balancesheet.config.AppSettings`;
library users keep full control of handler setup.

Example
-------
>>> from balancesheet.log import configure_logging, get_logger
>>> configure_logging("DEBUG")
>>> get_logger("cache").debug("cache hit for %s", "acme")
"""

from __future__ import annotations

import logging
from typing import Optional, Union

__all__ = ["ROOT_LOGGER_NAME", "get_logger", "configure_logging"]

ROOT_LOGGER_NAME = "balancesheet"

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Marks the handler installed by configure_logging so reconfiguring replaces it.
_HANDLER_ATTR = "_balancesheet_handler"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the package logger, or a child named ``balancesheet.<name>``."""
    if not name or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_logging(level: Union[str, int] = "INFO") -> logging.Logger:
    """
    Attach a single stream handler to the package logger.

    Calling this again swaps the level and reuses the existing handler,
    so repeated CLI invocations in one process do not duplicate output.
    """
    logger = get_logger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    handler = next(
        (h for h in logger.handlers if getattr(h, _HANDLER_ATTR, False)), None
    )
    if handler is None:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        setattr(handler, _HANDLER_ATTR, True)
        logger.addHandler(handler)
    handler.setLevel(level)
    return logger
