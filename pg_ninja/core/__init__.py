"""
Core execution components.

Re-exports the query executor, the transaction coordinator and the batch
runner so downstream code can import from `pg_ninja.core` directly.
"""

from pg_ninja.core.batch import BatchRunner
from pg_ninja.core.executor import QueryExecutor, normalize_result
from pg_ninja.core.transaction import TransactionCoordinator

__all__ = [
    "BatchRunner",
    "QueryExecutor",
    "TransactionCoordinator",
    "normalize_result",
]
