"""
Structured logging configuration.
"""

import logging
import sys
from typing import Any

from pythonjsonlogger.json import JsonFormatter


def configure_logging(app_name: str, log_level: str = "INFO") -> logging.Logger:
    """
    Configure structured logging for the application.

    Installs one JSON handler on the root logger so module loggers obtained via
    `get_logger(__name__)` and the `audit` logger share the same output.

    Args:
        app_name: Name of the application
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured application logger
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)

    logger = logging.getLogger(app_name)
    logger.setLevel(level)

    if any(getattr(handler, "_pdv_json", False) for handler in root.handlers):
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "name": "logger", "asctime": "timestamp"},
            datefmt="%Y-%m-%dT%H:%M:%S",
            static_fields={"app": app_name},
        )
    )
    handler._pdv_json = True  # type: ignore[attr-defined]
    root.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Module name (typically __name__)
    """
    return logging.getLogger(name)


class LoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that adds contextual information to all log messages.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple:
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs
