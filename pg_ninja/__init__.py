"""
pg-ninja - an orchestration layer over a single PostgreSQL connection.

The package offers three ways to run SQL on one asyncio psycopg session:

- Single queries with normalized, command-tagged results
- Ordered transactions that commit together or roll back together
- Concurrent batches that report per-item success and failure

Colored query event logging, spreadsheet export of SELECT results and a
typer CLI ride along.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from pg_ninja.client import PgNinja
from pg_ninja.config import Settings, build_dsn, get_settings
from pg_ninja.domain.models import (
    BatchReport,
    BatchRequest,
    MutationResult,
    Query,
    QueryResult,
    SelectResult,
    StatusResult,
    TransactionRequest,
)
from pg_ninja.errors import (
    ConnectionClosedError,
    DatabaseConnectionError,
    EmptyResultError,
    ExportError,
    PgNinjaError,
    QueryError,
    TransactionError,
)
from pg_ninja.utils.logging import EventLog, configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Facade
    "PgNinja",
    # Configuration
    "Settings",
    "build_dsn",
    "get_settings",
    # Domain
    "BatchReport",
    "BatchRequest",
    "MutationResult",
    "Query",
    "QueryResult",
    "SelectResult",
    "StatusResult",
    "TransactionRequest",
    # Errors
    "ConnectionClosedError",
    "DatabaseConnectionError",
    "EmptyResultError",
    "ExportError",
    "PgNinjaError",
    "QueryError",
    "TransactionError",
    # Logging
    "EventLog",
    "configure_logging",
    "get_logger",
]
