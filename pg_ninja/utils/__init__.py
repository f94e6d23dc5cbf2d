"""
Utilities package for pg-ninja.

Exports shared logging helpers. Keep this package lightweight and free of
domain-specific logic.
"""

from pg_ninja.utils.logging import EventLog, configure_logging, get_logger

__all__ = [
    "EventLog",
    "configure_logging",
    "get_logger",
]
