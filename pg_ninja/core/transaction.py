"""
Atomic execution of an ordered list of queries.

State machine: IDLE -> BEGIN -> EXECUTING(i) -> COMMIT | ROLLBACK.

Steps run strictly one after another on the shared connection. The first step
that comes back without a command tag, or any exception (including one raised
by BEGIN or COMMIT), ends the transaction: ROLLBACK is issued and no later
step runs.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional

from pg_ninja.core.executor import QueryExecutor
from pg_ninja.domain.models import QueryResult, TransactionRequest
from pg_ninja.errors import TransactionError
from pg_ninja.infrastructure.connection import ConnectionHandle
from pg_ninja.utils.logging import EventLog, get_logger

log = get_logger(__name__)


class TransactionCoordinator:
    """
    Run a TransactionRequest with BEGIN/COMMIT/ROLLBACK semantics.

    `lock` is held from BEGIN until COMMIT or ROLLBACK so that no other
    transaction or batch sharing the connection can interleave statements.
    """

    def __init__(
        self,
        connection: ConnectionHandle,
        executor: QueryExecutor,
        events: EventLog,
        lock: Optional[asyncio.Lock] = None,
    ) -> None:
        self._connection = connection
        self._executor = executor
        self._events = events
        self._lock = lock or asyncio.Lock()

    async def run(self, request: TransactionRequest) -> QueryResult:
        """
        Execute every query in order and commit, or roll back and raise.

        Returns
        -------
        QueryResult
            The result of the final query.

        Raises
        ------
        TransactionError
            When a step fails or anything raises. `fatal` tells the two apart;
            for the latter the original error is the `__cause__`.
        """
        size = len(request.queries)
        if not size:
            raise TransactionError("transaction has no queries", fatal=True)

        results: List[QueryResult] = []
        async with self._lock:
            step: Optional[int] = None
            try:
                await self._connection.run("BEGIN")
                for step, query in enumerate(request.queries):
                    result = await self._executor.execute(query)
                    results.append(result)
                    if result.command_tag is None:
                        self._events.emit(f"failed transaction of {size} queries", "yellow")
                        await self._connection.run("ROLLBACK")
                        raise TransactionError("transaction failed", failed_index=step)
                step = None
                await self._connection.run("COMMIT")
            except TransactionError:
                raise
            except Exception as exc:
                self._events.emit(
                    f"fatal error with transaction of {size} queries: {exc}", "red"
                )
                await self._rollback_quietly()
                raise TransactionError(
                    f"transaction failed: {exc}", failed_index=step, fatal=True
                ) from exc

        self._events.emit(f"success transaction of {size} queries", "blue")
        return results[-1]

    async def _rollback_quietly(self) -> None:
        """Best-effort ROLLBACK; its own failure must not mask the original error."""
        try:
            await self._connection.run("ROLLBACK")
        except Exception:  # noqa: BLE001 - the original error is what gets raised
            log.warning("ROLLBACK after failed transaction also failed", exc_info=True)


__all__ = ["TransactionCoordinator"]
