"""Row limiter -- bounds how many rows a validated statement can return.

Statements without their own top-level LIMIT / FETCH FIRST are wrapped as
``SELECT * FROM (<statement>) AS safe_sub LIMIT <cap>``, which leaves the
inner projection (column names and order) untouched.  Statements that carry
their own bound keep it; the executor still stops fetching at the cap.

This is a pure function.  It produces SQL text and never executes anything.
"""

from __future__ import annotations

import logging

from safesql_engine.models.statement import SqlStatement
from safesql_engine.sql_toolkit import get_sql_toolkit
from safesql_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)

SUBQUERY_ALIAS = "safe_sub"


@profile_operation("sql.row_cap")
def apply_row_cap(statement: SqlStatement, cap: int) -> str:
    """Return SQL for *statement* that yields at most *cap* rows.

    Parameters
    ----------
    statement:
        A validated SELECT.
    cap:
        Positive row cap.

    Returns
    -------
    str
        The wrapped SQL, or the caller's text unchanged when it already
        has a top-level bound.
    """
    if not statement.is_select:
        raise ValueError("apply_row_cap requires a validated SELECT statement")

    result = get_sql_toolkit().row_limiter.wrap_with_limit(
        statement.tree,
        cap,
        statement.dialect,
        alias=SUBQUERY_ALIAS,
        source=statement.text,
    )
    if not result.applied:
        logger.debug("Statement keeps its own bound (%s); cap enforced at fetch", result.existing_bound)
    return result.sql
