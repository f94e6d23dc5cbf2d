"""
Connection handle for pg-ninja.

Wraps one psycopg `AsyncConnection` in autocommit mode so that transaction
control is explicit (`BEGIN` / `COMMIT` / `ROLLBACK` statements issued by the
coordinator). psycopg serializes concurrent statements on a connection with an
internal lock, which is what lets the batch runner dispatch many statements on
one session.

There is no pooling, reconnection or retry here: a failed connect raises
`DatabaseConnectionError` and the caller decides what to do.
"""

from __future__ import annotations

from typing import Any, Dict, List, NamedTuple, Optional, Protocol, Sequence, runtime_checkable

import psycopg
from psycopg import AsyncConnection
from psycopg.rows import dict_row

from pg_ninja.config import build_dsn, get_settings
from pg_ninja.errors import ConnectionClosedError, DatabaseConnectionError, QueryError
from pg_ninja.utils.logging import get_logger

log = get_logger(__name__)


class DriverResult(NamedTuple):
    """Raw outcome of one statement as reported by the driver."""

    status: Optional[str]
    rows: List[Dict[str, Any]]
    rowcount: int


@runtime_checkable
class ConnectionHandle(Protocol):
    """
    Contract the executor, coordinator and batch runner consume.

    `run` raises `QueryError` when the server or driver reports an error and
    `ConnectionClosedError` when the handle is not connected.
    """

    async def connect(self) -> None:
        ...

    async def run(self, text: str, params: Sequence[Any] = ()) -> DriverResult:
        ...

    async def end(self) -> None:
        ...


class PsycopgConnection:
    """
    A single live PostgreSQL session backed by psycopg.

    Parameters
    ----------
    dsn : str | None
        libpq connection string. Defaults to one built from settings.
    connect_timeout : int | None
        Seconds to wait for the server. Defaults to settings.db_connect_timeout.
    """

    def __init__(self, dsn: Optional[str] = None, connect_timeout: Optional[int] = None) -> None:
        settings = get_settings()
        self._dsn = dsn or build_dsn(settings)
        self._connect_timeout = (
            connect_timeout if connect_timeout is not None else settings.db_connect_timeout
        )
        self._conn: Optional[AsyncConnection] = None

    @property
    def dsn(self) -> str:
        return self._dsn

    @property
    def connected(self) -> bool:
        return self._conn is not None and not self._conn.closed

    async def connect(self) -> None:
        if self.connected:
            return
        try:
            self._conn = await AsyncConnection.connect(
                self._dsn,
                autocommit=True,
                row_factory=dict_row,
                connect_timeout=self._connect_timeout,
            )
        except psycopg.Error as exc:
            raise DatabaseConnectionError(str(exc)) from exc
        log.debug("Connection established", extra={"server_version": self._conn.info.server_version})

    def _require(self) -> AsyncConnection:
        if self._conn is None or self._conn.closed:
            raise ConnectionClosedError("connection is not open; call connect() first")
        return self._conn

    async def run(self, text: str, params: Sequence[Any] = ()) -> DriverResult:
        conn = self._require()
        try:
            async with conn.cursor() as cur:
                # None keeps literal % signs intact in parameterless statements.
                await cur.execute(text, tuple(params) or None)
                rows = await cur.fetchall() if cur.description is not None else []
                return DriverResult(status=cur.statusmessage, rows=list(rows), rowcount=cur.rowcount)
        except psycopg.Error as exc:
            raise QueryError(str(exc).strip(), sqlstate=exc.sqlstate) from exc

    async def end(self) -> None:
        if self._conn is None:
            return
        try:
            await self._conn.close()
        finally:
            self._conn = None
        log.debug("Connection closed")


__all__ = ["ConnectionHandle", "DriverResult", "PsycopgConnection"]
