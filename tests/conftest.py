"""
Pytest configuration for pg-ninja.

Provides fixtures for:
- An in-memory fake session with transaction visibility semantics (unit tests)
- Capturing query events
- Settings and database connection management for integration tests
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from typing import Any, Dict, Generator, List, Optional, Sequence, Union

import psycopg
import pytest

from pg_ninja.config import Settings
from pg_ninja.errors import ConnectionClosedError, QueryError
from pg_ninja.infrastructure.connection import DriverResult
from pg_ninja.utils.logging import EVENTS_LOGGER_NAME

_INSERT = re.compile(r"^INSERT INTO t VALUES \((\d+|%s)\)$")
_UPDATE = re.compile(r"^UPDATE t SET .* RETURNING .*$")


class FakeConnection:
    """
    Stand-in for one PostgreSQL session holding a single-column table `t`.

    Writes made between BEGIN and COMMIT are staged and only become visible in
    `committed` on COMMIT; ROLLBACK discards them. `responses` overrides the
    outcome of a statement by exact text (a DriverResult or an exception to
    raise), and `delays` makes a statement take that many seconds.
    """

    def __init__(self) -> None:
        self.connected = False
        self.committed: List[int] = []
        self.statements: List[str] = []
        self.responses: Dict[str, Union[DriverResult, Exception]] = {}
        self.delays: Dict[str, float] = {}
        self.completion_order: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._pending: Optional[List[int]] = None
        self.connect_error: Optional[Exception] = None

    @property
    def in_transaction(self) -> bool:
        return self._pending is not None

    async def connect(self) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    async def end(self) -> None:
        self.connected = False

    async def run(self, text: str, params: Sequence[Any] = ()) -> DriverResult:
        if not self.connected:
            raise ConnectionClosedError("connection is not open; call connect() first")
        self.statements.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(text, 0))
            result = self._dispatch(text, tuple(params))
            self.completion_order.append(text)
            return result
        finally:
            self.in_flight -= 1

    def _dispatch(self, text: str, params: tuple) -> DriverResult:
        if text in self.responses:
            response = self.responses[text]
            if isinstance(response, Exception):
                raise response
            return response
        if text == "BEGIN":
            self._pending = []
            return DriverResult("BEGIN", [], -1)
        if text == "COMMIT":
            if self._pending is not None:
                self.committed.extend(self._pending)
            self._pending = None
            return DriverResult("COMMIT", [], -1)
        if text == "ROLLBACK":
            self._pending = None
            return DriverResult("ROLLBACK", [], -1)

        match = _INSERT.match(text)
        if match:
            value = params[0] if match.group(1) == "%s" else int(match.group(1))
            target = self._pending if self._pending is not None else self.committed
            target.append(value)
            return DriverResult("INSERT 0 1", [], 1)
        if text == "SELECT id FROM t":
            rows = [{"id": value} for value in self.committed]
            return DriverResult(f"SELECT {len(rows)}", rows, len(rows))
        if _UPDATE.match(text):
            return DriverResult("UPDATE 1", [{"id": 1}], 1)

        raise QueryError(f'syntax error at or near "{text.split()[0]}"', sqlstate="42601")


class RecordingExporter:
    """Exporter that remembers the row sets it was handed."""

    def __init__(self) -> None:
        self.calls: List[List[Dict[str, Any]]] = []

    def __call__(self, rows: List[Dict[str, Any]]) -> str:
        self.calls.append(rows)
        return "exports/fake.xlsx"


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def fake_connection() -> FakeConnection:
    conn = FakeConnection()
    conn.connected = True
    return conn


@pytest.fixture
def recording_exporter() -> RecordingExporter:
    return RecordingExporter()


@pytest.fixture
def event_records() -> Generator[List[logging.LogRecord], None, None]:
    """
    Collect records sent to the query events logger during one test.

    Yields the live list; each record carries `color` from `extra`.
    """
    logger = logging.getLogger(EVENTS_LOGGER_NAME)
    handler = _ListHandler()
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        yield handler.records
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous_level)


@pytest.fixture
def unit_settings() -> Settings:
    """Settings for unit tests; never read from the environment or .env."""
    return Settings(_env_file=None, query_log_enabled=True, export_dir="exports")


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "postgres"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except Exception:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped autocommit connection for checking what
    other sessions can see.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn, autocommit=True)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def ninja_items_table(db_connection: psycopg.Connection) -> Generator[str, None, None]:
    """
    Create an empty `ninja_items` table for one test and drop it afterwards.
    """
    with db_connection.cursor() as cur:
        cur.execute("DROP TABLE IF EXISTS ninja_items;")
        cur.execute("CREATE TABLE ninja_items (id integer PRIMARY KEY, label text);")
    yield "ninja_items"
    with db_connection.cursor() as cur:
        cur.execute("DROP TABLE IF EXISTS ninja_items;")
