from __future__ import annotations

from typing import Any, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pg_ninja.domain.models import BatchReport, QueryResult

_MAX_DETAIL = 80


def _truncate(value: Any, width: int = _MAX_DETAIL) -> str:
    text = str(value)
    return text if len(text) <= width else text[: width - 1] + "…"


def render_report(report: BatchReport) -> Table:
    """
    Build a rich table with one row per batch item, in submission order.

    Successful items show their row count when rows were retained; failed
    items show the query text and the error.
    """
    status = "[green]success[/green]" if report.overall_success else "[red]failed[/red]"
    table = Table(
        title=f"Multi-query {report.completed_count}/{report.total_count} ({status})",
        box=box.ROUNDED,
        caption=f"Elapsed: {report.elapsed_millis} ms",
    )

    table.add_column("#", justify="right", style="cyan", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Detail", style="dim")

    for index in range(report.total_count):
        if index in report.failure_by_index:
            query = report.failure_by_index[index]
            error = report.error_by_index.get(index)
            detail = f"{_truncate(query.text, 40)} -> {type(error).__name__}: {error}"
            table.add_row(str(index), "[red]failed[/red]", escape(_truncate(detail)))
        elif index in report.success_by_index:
            rows = report.success_by_index[index]
            table.add_row(str(index), "[green]ok[/green]", f"{len(rows):,} rows")
        else:
            table.add_row(str(index), "[green]ok[/green]", "")

    if report.fatal_error is not None:
        table.add_section()
        table.add_row("-", "[bold red]fatal[/bold red]", escape(_truncate(report.fatal_error)))

    return table


def print_report(report: BatchReport, console: Optional[Console] = None) -> None:
    """Render a BatchReport to the console."""
    console = console or Console()
    console.print(render_report(report))


def print_result(result: QueryResult, console: Optional[Console] = None) -> None:
    """
    Render the rows of a QueryResult as a table, or its command tag and
    affected-row count when it returned no rows.
    """
    console = console or Console()

    if not result.rows:
        tag = result.command_tag or "[yellow]no command tag[/yellow]"
        console.print(f"{tag} ({result.row_count} rows affected)")
        return

    table = Table(box=box.ROUNDED, caption=f"{len(result.rows):,} rows")
    columns = list(result.rows[0].keys())
    for column in columns:
        table.add_column(str(column), overflow="fold")
    for row in result.rows:
        table.add_row(*(escape(_truncate(row.get(column, ""))) for column in columns))

    console.print(table)


__all__ = ["print_report", "print_result", "render_report"]
