"""Row capping and read-only execution backends."""

from __future__ import annotations

from safesql_engine.executor.base import FetchResult, QueryExecutor
from safesql_engine.executor.row_limiter import apply_row_cap
from safesql_engine.executor.sql_executor import SqlAlchemyExecutor, build_executor

__all__ = [
    "FetchResult",
    "QueryExecutor",
    "SqlAlchemyExecutor",
    "apply_row_cap",
    "build_executor",
]
