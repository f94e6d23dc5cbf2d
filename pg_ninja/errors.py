"""
Exception hierarchy for pg-ninja.

Single-query and transaction failures are raised to the caller. Batch
failures are never raised; they are recorded on the BatchReport.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from pg_ninja.domain.models import Query


class PgNinjaError(RuntimeError):
    """Base class for every error raised by pg-ninja."""


class DatabaseConnectionError(PgNinjaError):
    """The connection to the database could not be established."""


class ConnectionClosedError(PgNinjaError):
    """The connection handle is not connected or has been ended."""


class QueryError(PgNinjaError):
    """
    A single query failed on the server or in the driver.

    Attributes
    ----------
    query : Query | None
        The query that failed, when known.
    sqlstate : str | None
        The five-character SQLSTATE reported by PostgreSQL, if any.
    """

    def __init__(
        self,
        message: str,
        query: Optional["Query"] = None,
        sqlstate: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.query = query
        self.sqlstate = sqlstate


class TransactionError(PgNinjaError):
    """
    A transaction was rolled back, or was rejected before BEGIN was sent.

    `fatal` is False when a step completed without a command tag, and True
    when an exception interrupted the transaction; in that case the
    original exception is chained as `__cause__`.
    """

    def __init__(
        self,
        message: str = "transaction failed",
        *,
        failed_index: Optional[int] = None,
        fatal: bool = False,
    ) -> None:
        super().__init__(message)
        self.failed_index = failed_index
        self.fatal = fatal


class EmptyResultError(PgNinjaError):
    """A batch item executed without error but returned no rows."""

    def __init__(self, message: str = "query returned no rows") -> None:
        super().__init__(message)


class ExportError(PgNinjaError):
    """Rows could not be written to a spreadsheet."""


__all__ = [
    "PgNinjaError",
    "DatabaseConnectionError",
    "ConnectionClosedError",
    "QueryError",
    "TransactionError",
    "EmptyResultError",
    "ExportError",
]
