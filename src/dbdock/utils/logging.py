"""Logging setup for dbdock."""

import logging
import sys
from typing import Callable

from pythonjsonlogger import jsonlogger

# Third-party loggers that are chatty at DEBUG and drown out poll output.
NOISY_LOGGERS = ("docker", "urllib3", "aiosqlite", "sqlalchemy.engine")


def setup_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure the root logger.

    The stdio transport owns stdout for protocol frames, so records are
    always written to stderr.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Format type (json or text)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if log_format.lower() == "json":
        formatter: logging.Formatter = jsonlogger.JsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "asctime": "timestamp"},
            timestamp=True,
        )
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler.setFormatter(formatter)
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the given name.

    Args:
        name: Name for the logger (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


# User-visible outcome sink: (level, message) where level is info, success, warning or error
Notifier = Callable[[str, str], None]

_NOTIFY_LEVELS = {"success": logging.INFO, "info": logging.INFO, "warning": logging.WARNING, "error": logging.ERROR}


def log_notifier(level: str, message: str) -> None:
    """Default notifier: write the notification to the ``dbdock.notify`` logger."""
    logging.getLogger("dbdock.notify").log(
        _NOTIFY_LEVELS.get(level, logging.INFO), message, extra={"notify_level": level}
    )
