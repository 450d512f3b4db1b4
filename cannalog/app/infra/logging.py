"""Logging helpers emitting snake_case events with structured extras."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from ..config import Settings

__all__ = ["configure_logging", "get_logger"]

ROOT_LOGGER_NAME = "cannalog"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a module logger nested under the app root logger."""

    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(settings: "Settings") -> None:
    """Attach a stream handler to the root app logger once per process."""

    global _configured
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(settings.log_level)
    if _configured:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    _configured = True
