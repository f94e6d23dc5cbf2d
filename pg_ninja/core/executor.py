"""
Single-query execution.

The executor is the only component that talks to the connection on behalf of
user queries. It turns the driver's raw outcome into a tagged `QueryResult`
and emits exactly one event per attempt.
"""

from __future__ import annotations

from typing import Optional

from pg_ninja.domain.models import (
    MUTATION_TAGS,
    MutationResult,
    Query,
    QueryResult,
    RowExporter,
    SelectResult,
    StatusResult,
    parse_command_tag,
)
from pg_ninja.errors import QueryError
from pg_ninja.infrastructure.connection import ConnectionHandle, DriverResult
from pg_ninja.utils.logging import EventLog


def normalize_result(
    raw: DriverResult, query: Optional[Query] = None, exporter: Optional[RowExporter] = None
) -> QueryResult:
    """Map a driver outcome onto the result variant for its command tag."""
    tag = parse_command_tag(raw.status)
    rows = list(raw.rows)
    row_count = raw.rowcount if raw.rowcount >= 0 else len(rows)

    if tag == "SELECT":
        return SelectResult(tag, rows, row_count, query, exporter=exporter)
    if tag in MUTATION_TAGS:
        return MutationResult(tag, rows, row_count, query)
    return StatusResult(tag, rows, row_count, query)


class QueryExecutor:
    """
    Run one query against a connection handle.

    Parameters
    ----------
    connection : ConnectionHandle
        The session every query runs on. Owned by the caller.
    events : EventLog
        Sink for the per-query success/failure event.
    exporter : callable | None
        Receives SELECT rows when `SelectResult.to_excel()` is called.
    """

    def __init__(
        self,
        connection: ConnectionHandle,
        events: EventLog,
        exporter: Optional[RowExporter] = None,
    ) -> None:
        self._connection = connection
        self._events = events
        self._exporter = exporter

    async def execute(self, query: Query) -> QueryResult:
        try:
            raw = await self._connection.run(query.text, query.params)
        except QueryError as exc:
            self._events.emit(f"error with query: {query.text}", "yellow")
            if exc.query is None:
                exc.query = query
            raise
        except Exception:
            self._events.emit(f"error with query: {query.text}", "yellow")
            raise

        self._events.emit(f"success query: {query.text}", "blue")
        return normalize_result(raw, query, self._exporter)


__all__ = ["QueryExecutor", "normalize_result"]
