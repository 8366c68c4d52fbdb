"""Statement validator -- admits exactly one read-only SELECT.

Classification is structural: the text is parsed under the active backend's
dialect and the resulting tree is inspected, so comments, casing and
whitespace cannot disguise a write.  A statement is a SELECT when its root is
a query (plain SELECT, a set operation such as UNION, or a parenthesised
query) and no node anywhere in the tree can write or run a command.  That
rules out ``SELECT ... INTO`` and data-modifying CTEs.

All SQL parsing is delegated to :mod:`safesql_engine.sql_toolkit`.
"""

from __future__ import annotations

import logging

from safesql_engine.errors import MultipleStatementsError, NotSelectError, ParseError
from safesql_engine.models.statement import SqlStatement, StatementKind
from safesql_engine.sql_toolkit import Dialect, SqlNode, SqlNodeKind, SqlParseError, get_sql_toolkit
from safesql_engine.telemetry.privacy import fingerprint_sql
from safesql_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)

# Root node kinds that produce a result set.
_QUERY_ROOTS: frozenset[SqlNodeKind] = frozenset(
    {
        SqlNodeKind.SELECT,
        SqlNodeKind.SET_OPERATION,
        SqlNodeKind.SUBQUERY,
    }
)

# Node kinds that disqualify a statement wherever they appear.
_WRITE_KINDS: frozenset[SqlNodeKind] = frozenset(
    {
        SqlNodeKind.INSERT,
        SqlNodeKind.UPDATE,
        SqlNodeKind.DELETE,
        SqlNodeKind.MERGE,
        SqlNodeKind.INTO,
        SqlNodeKind.CREATE,
        SqlNodeKind.DROP,
        SqlNodeKind.ALTER,
        SqlNodeKind.TRUNCATE,
        SqlNodeKind.GRANT,
        SqlNodeKind.REVOKE,
        SqlNodeKind.COMMAND,
        SqlNodeKind.PRAGMA,
    }
)


def classify_statement(tree: SqlNode) -> StatementKind:
    """Return ``SELECT`` for a read-only query tree, ``OTHER`` for anything else."""
    if tree.kind not in _QUERY_ROOTS:
        return StatementKind.OTHER
    if get_sql_toolkit().inspector.contained_kinds(tree) & _WRITE_KINDS:
        return StatementKind.OTHER
    return StatementKind.SELECT


@profile_operation("sql.validate")
def validate_statement(sql: str, dialect: Dialect) -> SqlStatement:
    """Parse *sql* and prove it is a single read-only SELECT.

    Args:
        sql: Untrusted caller SQL.
        dialect: Dialect of the active backend.

    Returns:
        The parsed :class:`SqlStatement` with ``kind == SELECT``.

    Raises:
        ParseError: The text is empty or does not parse.
        MultipleStatementsError: More than one top-level statement.
        NotSelectError: The single statement is not a read-only SELECT.
    """
    text = sql.strip() if sql else ""
    if not text:
        raise ParseError("Empty query.")

    try:
        parsed = get_sql_toolkit().parser.parse_multi(text, dialect)
    except SqlParseError as exc:
        logger.info("Rejected unparseable SQL [%s]", fingerprint_sql(text))
        detail = str(exc).splitlines()[0] if str(exc) else ""
        raise ParseError(f"SQL could not be parsed. {detail}".strip()) from exc

    if not parsed.statements:
        raise ParseError("Empty query.")

    if len(parsed.statements) > 1:
        logger.warning(
            "Rejected %d-statement input [%s]",
            len(parsed.statements),
            fingerprint_sql(text),
        )
        raise MultipleStatementsError(len(parsed.statements))

    tree = parsed.statements[0]
    if classify_statement(tree) is not StatementKind.SELECT:
        logger.warning(
            "Rejected non-SELECT statement (root=%s) [%s]",
            tree.kind.value,
            fingerprint_sql(text),
        )
        raise NotSelectError(tree.kind.value)

    return SqlStatement(text=text, tree=tree, kind=StatementKind.SELECT, dialect=dialect)
