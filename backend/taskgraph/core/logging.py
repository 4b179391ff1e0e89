"""Centralized logging configuration."""
from __future__ import annotations

import logging
from logging.config import dictConfig

from taskgraph.core.context import get_session_id


class SessionIdFilter(logging.Filter):
    """Add session_id attribute to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = get_session_id() or "-"
        return True


def configure_logging(*, log_level: str = "INFO") -> None:
    """Configure application logging once at startup."""
    if getattr(configure_logging, "_configured", False):
        return

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(session_id)s | %(message)s",
                }
            },
            "filters": {
                "session_id": {
                    "()": "taskgraph.core.logging.SessionIdFilter",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": log_level,
                    "filters": ["session_id"],
                }
            },
            "root": {
                "handlers": ["console"],
                "level": log_level,
            },
        }
    )

    logging.getLogger(__name__).debug("Logging configured at %s", log_level)
    setattr(configure_logging, "_configured", True)
