"""
Domain package for pg-ninja.

Exports the request, result and report models shared by the executor,
the transaction coordinator and the batch runner.
"""

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

__all__ = [
    "BatchReport",
    "BatchRequest",
    "MutationResult",
    "Query",
    "QueryResult",
    "SelectResult",
    "StatusResult",
    "TransactionRequest",
]
