"""Relation whitelist checker.

Every relation a statement reads (including those inside joins, subqueries,
set operations and CTE bodies) must be in the whitelist.  Names are compared
in their normalized lowercase form: ``schema.name`` when the statement
qualifies the relation, ``name`` otherwise.  Names of CTEs defined by the
statement itself are not relations.
"""

from __future__ import annotations

import logging

from safesql_engine.errors import ForbiddenRelationError
from safesql_engine.models.statement import RelationReference, SqlStatement
from safesql_engine.sql_toolkit import get_sql_toolkit
from safesql_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)


def extract_relations(statement: SqlStatement) -> tuple[RelationReference, ...]:
    """Return the distinct relations read by *statement*, sorted by name."""
    scope = get_sql_toolkit().scope_analyzer.extract_tables(statement.tree)
    refs = {RelationReference.from_table_ref(ref) for ref in scope.referenced_tables}
    return tuple(sorted(refs, key=lambda r: r.qualified_name))


@profile_operation("sql.whitelist")
def check_whitelist(statement: SqlStatement, whitelist: frozenset[str]) -> None:
    """Raise if *statement* reads any relation outside *whitelist*.

    A statement that reads no relation at all (``SELECT 1``) passes.

    Raises:
        ForbiddenRelationError: Naming the first offending relation in sorted
            order, with every offender in ``offenders``.
    """
    offenders = tuple(
        ref.qualified_name for ref in extract_relations(statement) if ref.qualified_name not in whitelist
    )
    if offenders:
        logger.warning("Rejected statement reading %d non-whitelisted relation(s)", len(offenders))
        raise ForbiddenRelationError(offenders[0], whitelist, offenders)
