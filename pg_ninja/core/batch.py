"""
Concurrent execution of independent queries.

Every query in a BatchRequest is dispatched at once and the runner joins on
all of them. Items share one connection, so this is concurrency of dispatch:
the driver decides the order statements reach the server, and items are not
isolated from one another (no per-item transaction or savepoint).

Success for an item means "produced data". An item that executes cleanly but
returns no rows is recorded as a failure with `EmptyResultError`, including
non-SELECT statements such as an UPDATE without RETURNING that matches
nothing. Items the request rejected during coercion are recorded as failures
without being sent. Per-item failures never abort siblings and are never
raised.
"""

from __future__ import annotations

import asyncio
import time
from typing import AsyncContextManager, Optional

from pg_ninja.core.executor import QueryExecutor
from pg_ninja.domain.models import BatchReport, BatchRequest, Query
from pg_ninja.errors import EmptyResultError
from pg_ninja.utils.logging import EventLog, get_logger

log = get_logger(__name__)


def _elapsed_ms(start: float) -> int:
    return int(round((time.perf_counter() - start) * 1000))


class BatchRunner:
    """
    Run a BatchRequest concurrently and return a BatchReport.

    The top-level call never raises an Exception: orchestration failures are
    stored on `BatchReport.fatal_error`.
    """

    def __init__(
        self,
        executor: QueryExecutor,
        events: EventLog,
        lock: Optional[AsyncContextManager] = None,
    ) -> None:
        self._executor = executor
        self._events = events
        self._lock = lock or asyncio.Lock()

    async def _run_item(
        self, index: int, query: Query, report: BatchReport, request: BatchRequest
    ) -> None:
        if index in request.rejected:
            report.record_failure(index, query, request.rejected[index])
            return
        try:
            result = await self._executor.execute(query)
        except Exception as exc:  # noqa: BLE001 - item failures are data, not control flow
            report.record_failure(index, query, exc)
            return

        if not result.rows:
            report.record_failure(index, query, EmptyResultError())
        else:
            report.record_success(index, result.rows, request.retain_success_rows)

    async def run(self, request: BatchRequest) -> BatchReport:
        queries = request.queries
        report = BatchReport(total_count=len(queries))
        start = time.perf_counter()

        try:
            async with self._lock:
                start = time.perf_counter()
                await asyncio.gather(
                    *(
                        self._run_item(index, query, report, request)
                        for index, query in enumerate(queries)
                    )
                )
                report.finalize(_elapsed_ms(start))
            self._events.emit(
                f"new {report.completed_count}/{report.total_count} multi-query", "white"
            )
        except Exception as exc:  # noqa: BLE001 - the batch call does not raise
            report.abort(exc, queries, _elapsed_ms(start))
            self._events.emit(f"fatal error of {len(queries)} queries multi-query: {exc}", "red")
            log.debug("Batch orchestration failed", exc_info=True)

        return report


__all__ = ["BatchRunner"]
