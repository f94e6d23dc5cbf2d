"""
Structured logging utilities for pg-ninja.

Two kinds of output go through the standard library logging machinery:

- Diagnostic logs from module loggers (`get_logger(__name__)`), rendered by a
  concise console formatter or a JSON formatter on the root handler.
- Query events (one per query, transaction and batch), sent through an
  `EventLog` to the dedicated `pg_ninja.events` logger, which renders a
  timestamped, color-tagged line.

Usage:
    from pg_ninja.utils.logging import EventLog, configure_logging

    configure_logging(level="INFO", json_logs=False)
    events = EventLog(enabled=True)
    events.emit("success query: SELECT 1", "blue")
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime
from typing import Any, Dict, Literal, Optional

EVENTS_LOGGER_NAME = "pg_ninja.events"

Color = Literal["white", "green", "yellow", "red", "blue"]

ANSI_COLORS: Dict[str, str] = {
    "white": "\x1b[37m",
    "green": "\x1b[32m",
    "yellow": "\x1b[33m",
    "red": "\x1b[31m",
    "blue": "\x1b[34m",
}
ANSI_RESET = "\x1b[0m"

COLOR_LEVELS: Dict[str, int] = {
    "white": logging.INFO,
    "green": logging.INFO,
    "blue": logging.INFO,
    "yellow": logging.WARNING,
    "red": logging.ERROR,
}

# Attributes every LogRecord carries; anything else was passed through `extra`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "extra"}


def _json_formatter(record: logging.LogRecord) -> str:
    """Render a log record as JSON string."""
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    for key, value in vars(record).items():
        if key not in _RESERVED_ATTRS and not key.startswith("_"):
            payload[key] = value
    if hasattr(record, "extra") and isinstance(record.extra, dict):
        payload.update(record.extra)
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    """Minimal JSON formatter for structured logs."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


class ColorFormatter(logging.Formatter):
    """Render `<color>[<local time>] - <message><reset>` for query events."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        color = getattr(record, "color", "white")
        stamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        prefix = ANSI_COLORS.get(color, ANSI_COLORS["white"])
        return f"{prefix}[{stamp}] - {record.getMessage()}{ANSI_RESET}"


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    force: bool = True,
) -> None:
    """
    Configure root and query-event logging.

    Parameters
    ----------
    level : str
        Logging level name (e.g., "DEBUG", "INFO", "WARNING").
    json_logs : bool
        Whether to emit logs as JSON. If False, diagnostics use a concise
        human formatter and query events use the color formatter.
    force : bool
        Whether to override existing logging configuration (recommended in CLI apps).
        With False, an already configured root logger is left untouched.
    """
    if not force and logging.getLogger().handlers:
        return

    formatter_name = "json" if json_logs else "console"
    events_formatter = "json" if json_logs else "color"

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
                "json": {
                    "()": JsonFormatter,
                },
                "color": {
                    "()": ColorFormatter,
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": formatter_name,
                    "level": level,
                },
                "events": {
                    "class": "logging.StreamHandler",
                    "formatter": events_formatter,
                    "level": "DEBUG",
                },
            },
            "loggers": {
                EVENTS_LOGGER_NAME: {
                    "handlers": ["events"],
                    "level": "DEBUG",
                    "propagate": False,
                },
            },
            "root": {
                "handlers": ["default"],
                "level": level,
            },
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger with the given name. If name is None, returns the root logger.
    """
    return logging.getLogger(name)


def _install_default_event_handler(logger: logging.Logger) -> None:
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(ColorFormatter())
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False


class EventLog:
    """
    Severity sink for query, transaction and batch events.

    Disabling it suppresses output only; callers behave identically either way.
    """

    def __init__(self, enabled: bool = True, logger: Optional[logging.Logger] = None) -> None:
        self.enabled = enabled
        if logger is None:
            logger = get_logger(EVENTS_LOGGER_NAME)
            if enabled:
                _install_default_event_handler(logger)
        self._logger = logger

    def emit(self, message: str, color: Color = "white") -> None:
        if not self.enabled:
            return
        level = COLOR_LEVELS.get(color, logging.INFO)
        self._logger.log(level, message, extra={"color": color})


__all__ = [
    "ANSI_COLORS",
    "EVENTS_LOGGER_NAME",
    "Color",
    "ColorFormatter",
    "EventLog",
    "JsonFormatter",
    "configure_logging",
    "get_logger",
]
