"""
Domain models for pg-ninja.

Requests (`Query`, `TransactionRequest`, `BatchRequest`) are immutable pydantic
models built per call. Results are tagged by command category: `SelectResult`
for row-returning statements, `MutationResult` for statements that report an
affected-row count, and `StatusResult` for everything else. `BatchReport` is
the mutable accumulator the batch runner fills in while its items settle.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, Field

from pg_ninja.errors import ExportError

Row = Dict[str, Any]
RowExporter = Callable[[List[Row]], Any]

MUTATION_TAGS = frozenset({"INSERT", "UPDATE", "DELETE", "MERGE", "COPY"})


class Query(BaseModel):
    """
    A single SQL statement and its positional parameters.
    """

    text: str = Field(..., min_length=1, description="SQL text with %s placeholders.")
    params: Tuple[Any, ...] = Field((), description="Positional parameters.")

    model_config = {
        "frozen": True,
        "arbitrary_types_allowed": True,
    }

    @classmethod
    def coerce(cls, item: "QueryLike", params: Optional[Sequence[Any]] = None) -> "Query":
        """
        Build a Query from a Query, a bare SQL string, or a `(text, params)` pair.

        When `params` is given it replaces whatever parameters `item` carries.
        """
        if isinstance(item, Query):
            if params is None:
                return item
            return cls(text=item.text, params=tuple(params))
        if isinstance(item, str):
            return cls(text=item, params=tuple(params or ()))
        text, item_params = item
        chosen = params if params is not None else item_params
        return cls(text=text, params=tuple(chosen or ()))

    @classmethod
    def placeholder(cls, item: Any) -> "Query":
        """
        Unvalidated stand-in for an item that could not be coerced.

        Keeps the item's text (or its repr) so a report can still name it.
        """
        if isinstance(item, str):
            text = item
        elif isinstance(item, (tuple, list)) and item and isinstance(item[0], str):
            text = item[0]
        else:
            text = repr(item)
        return cls.model_construct(text=text, params=())

    @staticmethod
    def _params_at(params: Optional[Sequence[Optional[Sequence[Any]]]], index: int) -> Any:
        if params is None or index >= len(params):
            return None
        return params[index]

    @classmethod
    def coerce_many(
        cls,
        items: Iterable["QueryLike"],
        params: Optional[Sequence[Optional[Sequence[Any]]]] = None,
    ) -> Tuple["Query", ...]:
        """
        Coerce a sequence of queries, zipping a parallel params list by index.

        A missing or None entry keeps whatever parameters the item carries.
        """
        return tuple(
            cls.coerce(item, cls._params_at(params, i)) for i, item in enumerate(items)
        )

    @classmethod
    def coerce_each(
        cls,
        items: Iterable["QueryLike"],
        params: Optional[Sequence[Optional[Sequence[Any]]]] = None,
    ) -> Tuple[Tuple["Query", ...], Dict[int, Exception]]:
        """
        Like `coerce_many`, but an item that cannot be coerced does not stop
        the others: it is replaced by a placeholder and its error is returned
        under its index.
        """
        queries: List[Query] = []
        rejected: Dict[int, Exception] = {}
        for i, item in enumerate(items):
            try:
                queries.append(cls.coerce(item, cls._params_at(params, i)))
            except (TypeError, ValueError) as exc:
                queries.append(cls.placeholder(item))
                rejected[i] = exc
        return tuple(queries), rejected


QueryLike = Union[Query, str, Tuple[str, Sequence[Any]], List[Any]]


class TransactionRequest(BaseModel):
    """Ordered queries that must commit together or not at all."""

    queries: Tuple[Query, ...] = Field(..., min_length=1)

    model_config = {"frozen": True}


class BatchRequest(BaseModel):
    """Independent queries to run concurrently."""

    queries: Tuple[Query, ...] = Field(default_factory=tuple)
    retain_success_rows: bool = Field(
        False, description="Keep the rows of successful items on the report."
    )
    rejected: Dict[int, Exception] = Field(
        default_factory=dict,
        description="Errors for items that could not be coerced, by index; never sent.",
    )

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @classmethod
    def from_items(
        cls,
        items: Iterable["QueryLike"],
        params: Optional[Sequence[Optional[Sequence[Any]]]] = None,
        retain_success_rows: bool = False,
    ) -> "BatchRequest":
        queries, rejected = Query.coerce_each(items, params)
        return cls(queries=queries, retain_success_rows=retain_success_rows, rejected=rejected)


def parse_command_tag(status: Optional[str]) -> Optional[str]:
    """
    Extract the command keyword from a server status message.

    `"INSERT 0 1"` -> `"INSERT"`, `"CREATE TABLE"` -> `"CREATE"`, `None` -> `None`.
    """
    if not status:
        return None
    return status.split()[0].upper()


@dataclass(frozen=True)
class QueryResult:
    """
    Normalized outcome of one statement.

    `command_tag` is None when the statement did not complete as expected.
    """

    command_tag: Optional[str]
    rows: List[Row] = field(default_factory=list)
    row_count: int = 0
    query: Optional[Query] = field(default=None, compare=False)

    @property
    def kind(self) -> str:
        return "status"

    @property
    def completed(self) -> bool:
        return self.command_tag is not None


@dataclass(frozen=True)
class SelectResult(QueryResult):
    exporter: Optional[RowExporter] = field(default=None, repr=False, compare=False)

    @property
    def kind(self) -> str:
        return "select"

    def to_excel(self) -> Any:
        """Write the rows to a spreadsheet through the configured exporter."""
        if self.exporter is None:
            raise ExportError("no spreadsheet exporter configured for this result")
        return self.exporter(self.rows)


@dataclass(frozen=True)
class MutationResult(QueryResult):
    @property
    def kind(self) -> str:
        return "mutation"


@dataclass(frozen=True)
class StatusResult(QueryResult):
    pass


@dataclass
class BatchReport:
    """
    Accumulated outcome of a batch.

    Indices are submission order. Once `finalize` or `abort` has run, further
    writes from late-settling items are ignored so the returned report never
    changes under the caller.
    """

    total_count: int
    completed_count: int = 0
    success_by_index: Dict[int, List[Row]] = field(default_factory=dict)
    failure_by_index: Dict[int, Query] = field(default_factory=dict)
    error_by_index: Dict[int, Exception] = field(default_factory=dict)
    fatal_error: Optional[Exception] = None
    elapsed_millis: int = 0
    finalized: bool = field(default=False, repr=False)
    _settled: set = field(default_factory=set, repr=False)

    @property
    def overall_success(self) -> bool:
        return not self.error_by_index and self.fatal_error is None

    @property
    def settled_count(self) -> int:
        return self.completed_count + len(self.failure_by_index)

    def record_success(self, index: int, rows: List[Row], retain: bool) -> None:
        if self.finalized or index in self._settled:
            return
        self._settled.add(index)
        self.completed_count += 1
        if retain:
            self.success_by_index[index] = rows

    def record_failure(self, index: int, query: Query, error: Exception) -> None:
        if self.finalized or index in self._settled:
            return
        self._settled.add(index)
        self.failure_by_index[index] = query
        self.error_by_index[index] = error

    def finalize(self, elapsed_millis: int) -> None:
        self.elapsed_millis = elapsed_millis
        self.finalized = True

    def abort(self, error: Exception, queries: Sequence[Query], elapsed_millis: int = 0) -> None:
        """Record an orchestration failure; unsettled items fail with it."""
        self.fatal_error = error
        for index, query in enumerate(queries):
            self.record_failure(index, query, error)
        self.finalize(elapsed_millis)


__all__ = [
    "Row",
    "RowExporter",
    "MUTATION_TAGS",
    "Query",
    "QueryLike",
    "TransactionRequest",
    "BatchRequest",
    "parse_command_tag",
    "QueryResult",
    "SelectResult",
    "MutationResult",
    "StatusResult",
    "BatchReport",
]
