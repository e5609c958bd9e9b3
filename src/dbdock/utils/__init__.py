"""Utility helpers for dbdock."""

from .logging import Notifier, get_logger, log_notifier, setup_logging

__all__ = ["Notifier", "get_logger", "log_notifier", "setup_logging"]
