"""Logging setup for InspectFlow.

Modules log through ``logging.getLogger(__name__)``. Everything under the
``inspectflow`` package logger shares the handlers attached here once at
application startup.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import List

from inspectflow.core.config import Settings

PACKAGE_LOGGER = "inspectflow"
LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
# ISO 8601
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def parse_level(level: str) -> int:
    name = level.upper()
    if name not in LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of: {', '.join(LEVELS)}")
    return getattr(logging, name)


def _build_handlers(settings: Settings, name: str) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if settings.log_to_file:
        os.makedirs(settings.log_dir, exist_ok=True)
        handlers.append(RotatingFileHandler(
            os.path.join(settings.log_dir, f"{name}.log"),
            maxBytes=settings.log_file_max_bytes,
            backupCount=settings.log_file_backup_count,
        ))
    return handlers


def configure_from_settings(settings: Settings, name: str = PACKAGE_LOGGER) -> logging.Logger:
    """
    Apply ``settings.log_level`` to the package logger.

    Handlers are attached on the first call only; later calls just change
    the level, so reloading the app does not duplicate output.

    Raises:
        ValueError: Unknown level name
    """
    logger = logging.getLogger(name)
    logger.setLevel(parse_level(settings.log_level))
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in _build_handlers(settings, name):
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
