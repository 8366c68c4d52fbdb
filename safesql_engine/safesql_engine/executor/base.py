"""Abstract interface for query execution backends.

The gateway only ever hands an executor SQL that has already been validated,
whitelisted and row-capped.  Executors own the connection lifecycle: each
call acquires one connection and releases it on success, failure and
cancellation alike.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class FetchResult:
    """Rows returned by a backend, in backend order."""

    columns: tuple[str, ...]
    rows: list[dict[str, Any]] = field(default_factory=list)
    truncated: bool = False


class QueryExecutor(Protocol):
    """Structural interface for execution backends.

    Implementations are **not** required to subclass this protocol; they only
    need to expose methods with matching signatures (duck typing).
    """

    async def fetch_rows(self, sql: str, max_rows: int) -> FetchResult:
        """Run *sql* and return at most *max_rows* rows.

        Parameters
        ----------
        sql:
            Vetted SQL text.
        max_rows:
            Hard upper bound on delivered rows, independent of any LIMIT in
            the SQL.

        Raises
        ------
        ExecutionError
            On any backend failure.
        """
        ...

    async def explain_plan(self, sql: str) -> Any | None:
        """Return the engine's raw plan document for *sql*, or ``None``.

        ``None`` means the backend exposes no structured plan and callers
        should fall back to a degraded outline.
        """
        ...

    async def dispose(self) -> None:
        """Release pooled connections."""
        ...
