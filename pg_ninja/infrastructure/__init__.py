"""
Infrastructure package for pg-ninja.

Holds the connection handle: the only layer that touches the driver. Keep it
focused on I/O and resource management, decoupled from orchestration logic.
"""

from pg_ninja.infrastructure.connection import ConnectionHandle, DriverResult, PsycopgConnection

__all__ = [
    "ConnectionHandle",
    "DriverResult",
    "PsycopgConnection",
]
