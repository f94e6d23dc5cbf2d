from __future__ import annotations

import asyncio
import sys
from typing import List, Optional

import typer

from pg_ninja.client import PgNinja
from pg_ninja.config import get_settings
from pg_ninja.domain.models import SelectResult
from pg_ninja.errors import PgNinjaError, TransactionError
from pg_ninja.reporter import print_report, print_result
from pg_ninja.utils.logging import configure_logging

app = typer.Typer(help="pg-ninja: single queries, transactions and concurrent batches on PostgreSQL.")

DSN_OPTION = typer.Option(None, "--dsn", help="Connection string (default built from settings).")
NO_LOG_OPTION = typer.Option(False, "--no-log", help="Silence the colored query event log.")


def _client(dsn: Optional[str], no_log: bool) -> PgNinja:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    return PgNinja(dsn, log=False if no_log else None)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"log={settings.query_log_enabled} level={settings.log_level} "
        f"export_dir={settings.export_dir}"
    )


@app.command()
def query(
    sql: str = typer.Argument(..., help="Statement to run."),
    export: bool = typer.Option(False, "--export", "-e", help="Write SELECT rows to an .xlsx file."),
    dsn: Optional[str] = DSN_OPTION,
    no_log: bool = NO_LOG_OPTION,
) -> None:
    """
    Run one statement and print its rows.
    """

    async def _run() -> None:
        async with _client(dsn, no_log) as db:
            result = await db.query(sql)
        print_result(result)
        if export:
            if not isinstance(result, SelectResult):
                typer.echo("Only SELECT results can be exported.", err=True)
                raise typer.Exit(code=2)
            typer.echo(f"Exported to {result.to_excel()}")

    try:
        asyncio.run(_run())
    except PgNinjaError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)


@app.command()
def transaction(
    statements: List[str] = typer.Option(
        ..., "--query", "-q", help="Statement to run; repeat in execution order."
    ),
    dsn: Optional[str] = DSN_OPTION,
    no_log: bool = NO_LOG_OPTION,
) -> None:
    """
    Run statements in order inside one transaction.
    """

    async def _run() -> None:
        async with _client(dsn, no_log) as db:
            result = await db.transaction(statements)
        print_result(result)

    try:
        asyncio.run(_run())
    except TransactionError as exc:
        typer.echo(f"Transaction rolled back: {exc}", err=True)
        raise typer.Exit(code=1)
    except PgNinjaError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)


@app.command()
def batch(
    statements: List[str] = typer.Option(..., "--query", "-q", help="Statement to run; repeat."),
    retain: bool = typer.Option(False, "--retain", help="Keep rows of successful items."),
    dsn: Optional[str] = DSN_OPTION,
    no_log: bool = NO_LOG_OPTION,
) -> None:
    """
    Run independent statements concurrently and print the report.
    """

    async def _run() -> bool:
        async with _client(dsn, no_log) as db:
            report = await db.multiquery(statements, retain_success_rows=retain)
        print_report(report)
        return report.overall_success

    try:
        succeeded = asyncio.run(_run())
    except PgNinjaError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    if not succeeded:
        raise typer.Exit(code=1)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
