"""SQLGlot-backed implementation of the SQL toolkit protocols.

This is the ONLY file in the entire codebase that imports ``sqlglot`` directly.
All consumer code goes through the protocol interfaces defined in
:mod:`safesql_engine.sql_toolkit._protocols`.
"""

from __future__ import annotations

import logging

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from .._types import (
    Dialect,
    LimitResult,
    ParseResult,
    ScopeResult,
    SqlNode,
    SqlNodeKind,
    SqlParseError,
    TableRef,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Internal: SQLGlot expression → SqlNodeKind mapping
# ---------------------------------------------------------------------------

# Keyed by class name so that renamed or missing classes across sqlglot
# releases (``AlterTable`` vs ``Alter``, ``Revoke``) need no version checks.
_EXP_KIND_MAP: dict[str, SqlNodeKind] = {
    "Select": SqlNodeKind.SELECT,
    "Union": SqlNodeKind.SET_OPERATION,
    "Intersect": SqlNodeKind.SET_OPERATION,
    "Except": SqlNodeKind.SET_OPERATION,
    "Create": SqlNodeKind.CREATE,
    "Insert": SqlNodeKind.INSERT,
    "Update": SqlNodeKind.UPDATE,
    "Delete": SqlNodeKind.DELETE,
    "Drop": SqlNodeKind.DROP,
    "Alter": SqlNodeKind.ALTER,
    "AlterTable": SqlNodeKind.ALTER,
    "TruncateTable": SqlNodeKind.TRUNCATE,
    "Merge": SqlNodeKind.MERGE,
    "Grant": SqlNodeKind.GRANT,
    "Revoke": SqlNodeKind.REVOKE,
    "Command": SqlNodeKind.COMMAND,
    "Pragma": SqlNodeKind.PRAGMA,
    "With": SqlNodeKind.WITH,
    "CTE": SqlNodeKind.CTE,
    "From": SqlNodeKind.FROM,
    "Join": SqlNodeKind.JOIN,
    "Where": SqlNodeKind.WHERE,
    "Into": SqlNodeKind.INTO,
    "Limit": SqlNodeKind.LIMIT,
    "Fetch": SqlNodeKind.LIMIT,
    "Table": SqlNodeKind.TABLE,
    "Column": SqlNodeKind.COLUMN,
    "Star": SqlNodeKind.STAR,
    "Alias": SqlNodeKind.ALIAS,
    "Subquery": SqlNodeKind.SUBQUERY,
}

_MAX_NODE_DEPTH = 100


# ---------------------------------------------------------------------------
# Internal: AST conversion helpers
# ---------------------------------------------------------------------------


def _classify_node(node: exp.Expression) -> SqlNodeKind:
    """Map a sqlglot expression to a :class:`SqlNodeKind`."""
    return _EXP_KIND_MAP.get(type(node).__name__, SqlNodeKind.UNKNOWN)


def _node_name(node: exp.Expression) -> str:
    """Extract a meaningful name from a sqlglot expression node."""
    if isinstance(node, exp.Table):
        return _relation_name(node)
    if isinstance(node, exp.CTE):
        return node.alias or ""
    if isinstance(node, exp.Star):
        return "*"
    if isinstance(node, exp.Alias):
        return node.alias or ""
    name = getattr(node, "name", "")
    return str(name) if name else ""


def _to_sql_node(node: exp.Expression, dialect: Dialect, *, depth: int = 0) -> SqlNode:
    """Recursively convert a sqlglot AST into a :class:`SqlNode` tree.

    Limits recursion depth to avoid stack overflow on deeply nested SQL.
    Only the root carries rendered ``sql_text``; descendants are rendered
    on demand through :class:`SqlGlotRenderer`.
    """
    if depth > _MAX_NODE_DEPTH:
        return SqlNode(kind=SqlNodeKind.UNKNOWN, sql_text="...", raw=node)

    children = tuple(
        _to_sql_node(child, dialect, depth=depth + 1) for child in node.iter_expressions()
    )

    sql_text = ""
    if depth == 0:
        try:
            sql_text = node.sql(dialect=dialect.value)
        except SqlglotError:
            logger.debug("Could not render %s node", type(node).__name__)

    return SqlNode(
        kind=_classify_node(node),
        name=_node_name(node),
        children=children,
        sql_text=sql_text,
        raw=node,
    )


def _raw_expression(node: SqlNode) -> exp.Expression:
    raw = node.raw
    if raw is None:
        raise ValueError("SqlNode has no raw expression attached")
    if not isinstance(raw, exp.Expression):
        raise TypeError(f"Expected sqlglot Expression, got {type(raw).__name__}")
    return raw


def _relation_name(table: exp.Table) -> str:
    """Return the relation name of a ``Table`` node.

    Table-valued functions in FROM (``read_csv(...)``,
    ``pragma_table_info(...)``) surface under their function name.
    """
    target = table.this
    if isinstance(target, exp.Anonymous):
        return str(target.name or "")
    if isinstance(target, exp.Func):
        return target.sql_name().lower()
    return table.name or ""


def _normalise_table_name(table: exp.Table) -> TableRef:
    """Convert a sqlglot ``Table`` node to a :class:`TableRef`."""
    catalog = table.catalog or None
    schema = table.db or None
    return TableRef(catalog=catalog, schema=schema, name=_relation_name(table))


def _collect_cte_names(ast: exp.Expression) -> set[str]:
    """Collect all CTE alias names defined anywhere in *ast*, lowercased."""
    cte_names: set[str] = set()
    for cte_node in ast.find_all(exp.CTE):
        if cte_node.alias:
            cte_names.add(cte_node.alias.lower())
    return cte_names


def _with_clause(node: exp.Expression) -> exp.With | None:
    for child in node.iter_expressions():
        if isinstance(child, exp.With):
            return child
    return None


def _defines(ctes: list[exp.Expression], name: str) -> bool:
    return any((cte.alias or "").lower() == name for cte in ctes)


def _resolves_to_cte(table: exp.Table, name: str) -> bool:
    """Return True when a ``WITH`` enclosing *table* defines *name*.

    A CTE is visible in the body of the query that owns the ``WITH`` and in
    the bodies of CTEs listed after it.  Its own body sees it only under
    ``WITH RECURSIVE``.  A CTE defined in some other subquery is not visible.
    """
    child: exp.Expression = table
    parent = table.parent
    while parent is not None:
        if isinstance(parent, exp.With):
            ctes = list(parent.expressions)
            position = next((i for i, cte in enumerate(ctes) if cte is child), len(ctes))
            visible = ctes if parent.args.get("recursive") else ctes[:position]
            if _defines(visible, name):
                return True
        else:
            with_clause = _with_clause(parent)
            # Coming up out of the WITH itself is handled above.
            if with_clause is not None and with_clause is not child and _defines(with_clause.expressions, name):
                return True
        child, parent = parent, parent.parent
    return False


def _strip_terminator(sql: str) -> str:
    body = sql.strip()
    while body.endswith(";"):
        body = body[:-1].rstrip()
    return body


# ---------------------------------------------------------------------------
# SqlGlotParser
# ---------------------------------------------------------------------------


class SqlGlotParser:
    """SQLGlot-backed :class:`SqlParser` implementation."""

    def parse_one(
        self,
        sql: str,
        dialect: Dialect = Dialect.SQLITE,
    ) -> ParseResult:
        """Parse a single SQL statement."""
        result = self.parse_multi(sql, dialect)
        if len(result.statements) != 1:
            raise SqlParseError(f"Expected exactly 1 statement, got {len(result.statements)}")
        return result

    def parse_multi(
        self,
        sql: str,
        dialect: Dialect = Dialect.SQLITE,
    ) -> ParseResult:
        """Parse potentially multi-statement SQL."""
        try:
            asts = sqlglot.parse(sql, read=dialect.value)
        except SqlglotError as exc:
            raise SqlParseError(f"Failed to parse SQL: {exc}") from exc

        nodes: list[SqlNode] = []
        warnings: list[str] = []
        for ast in asts:
            if ast is None:
                warnings.append("Empty statement encountered")
                continue
            nodes.append(_to_sql_node(ast, dialect))

        return ParseResult(
            statements=tuple(nodes),
            dialect=dialect,
            warnings=warnings,
        )


# ---------------------------------------------------------------------------
# SqlGlotRenderer
# ---------------------------------------------------------------------------


class SqlGlotRenderer:
    """SQLGlot-backed :class:`SqlRenderer` implementation."""

    def render(
        self,
        node: SqlNode,
        dialect: Dialect = Dialect.SQLITE,
        *,
        pretty: bool = False,
    ) -> str:
        """Render an AST node to a SQL string."""
        return _raw_expression(node).sql(dialect=dialect.value, pretty=pretty)


# ---------------------------------------------------------------------------
# SqlGlotScopeAnalyzer
# ---------------------------------------------------------------------------


class SqlGlotScopeAnalyzer:
    """SQLGlot-backed :class:`SqlScopeAnalyzer` implementation.

    Walks every ``Table`` node in the tree rather than building optimizer
    scopes: scope building skips relations it cannot resolve, and anything
    skipped here would silently bypass the whitelist.  An unqualified name
    is dropped only when a CTE of that name is visible at the reference.
    """

    def extract_tables(self, node: SqlNode) -> ScopeResult:
        """Extract table references, skipping those that resolve to a CTE in scope."""
        ast = _raw_expression(node)
        cte_names = _collect_cte_names(ast)
        tables: set[TableRef] = set()

        for table in ast.find_all(exp.Table):
            ref = _normalise_table_name(table)
            if not ref.name:
                continue
            if (
                ref.catalog is None
                and ref.schema is None
                and ref.name.lower() in cte_names
                and _resolves_to_cte(table, ref.name.lower())
            ):
                continue
            tables.add(ref)

        return ScopeResult(
            referenced_tables=tuple(sorted(tables, key=lambda t: t.fully_qualified.lower())),
            cte_names=tuple(sorted(cte_names)),
        )


# ---------------------------------------------------------------------------
# SqlGlotInspector
# ---------------------------------------------------------------------------


class SqlGlotInspector:
    """SQLGlot-backed :class:`SqlStatementInspector` implementation."""

    def contained_kinds(self, node: SqlNode) -> frozenset[SqlNodeKind]:
        """Return the kinds of every expression in the full sqlglot tree."""
        # Expression.walk() is iterative, so depth is unbounded here.
        return frozenset(_classify_node(descendant) for descendant in _raw_expression(node).walk())


# ---------------------------------------------------------------------------
# SqlGlotRowLimiter
# ---------------------------------------------------------------------------


class SqlGlotRowLimiter:
    """SQLGlot-backed :class:`SqlRowLimiter` implementation."""

    def top_level_bound(self, node: SqlNode, dialect: Dialect = Dialect.SQLITE) -> str | None:
        """Return the statement's own LIMIT / FETCH clause as SQL, or ``None``."""
        ast = _raw_expression(node)
        while True:
            for key in ("limit", "fetch"):
                bound = ast.args.get(key)
                if isinstance(bound, exp.Expression):
                    return bound.sql(dialect=dialect.value).strip()
            if isinstance(ast, exp.Subquery) and not ast.alias:
                ast = ast.this
                continue
            return None

    def wrap_with_limit(
        self,
        node: SqlNode,
        limit: int,
        dialect: Dialect = Dialect.SQLITE,
        *,
        alias: str = "safe_sub",
        source: str | None = None,
    ) -> LimitResult:
        """Wrap the statement text in an outer ``SELECT *`` with a LIMIT.

        The tree only decides whether a top-level bound exists.  The text
        (*source*, or the root's ``sql_text``) is never re-rendered, so
        expression spelling and the column names the engine derives from it
        stay exactly as written.
        """
        if limit < 1:
            raise ValueError(f"limit must be a positive integer, got {limit}")

        ast = _raw_expression(node)
        text = source if source is not None else (node.sql_text or ast.sql(dialect=dialect.value))
        existing = self.top_level_bound(node, dialect)
        if existing is not None:
            return LimitResult(sql=text, applied=False, existing_bound=existing)

        body = _strip_terminator(text)
        while isinstance(ast, exp.Subquery) and not ast.alias and body.startswith("(") and body.endswith(")"):
            body = body[1:-1].strip()
            ast = ast.this

        # A trailing line comment would swallow the closing parenthesis.
        closing = "\n)" if "--" in body else ")"
        return LimitResult(sql=f"SELECT * FROM ({body}{closing} AS {alias} LIMIT {limit}", applied=True)


# ---------------------------------------------------------------------------
# SqlGlotToolkit (composite)
# ---------------------------------------------------------------------------


class SqlGlotToolkit:
    """Composite :class:`SqlToolkit` backed by SQLGlot.

    This is the default implementation returned by :func:`get_sql_toolkit`.
    """

    def __init__(self) -> None:
        self._parser = SqlGlotParser()
        self._renderer = SqlGlotRenderer()
        self._scope_analyzer = SqlGlotScopeAnalyzer()
        self._row_limiter = SqlGlotRowLimiter()
        self._inspector = SqlGlotInspector()

    @property
    def parser(self) -> SqlGlotParser:
        return self._parser

    @property
    def renderer(self) -> SqlGlotRenderer:
        return self._renderer

    @property
    def scope_analyzer(self) -> SqlGlotScopeAnalyzer:
        return self._scope_analyzer

    @property
    def row_limiter(self) -> SqlGlotRowLimiter:
        return self._row_limiter

    @property
    def inspector(self) -> SqlGlotInspector:
        return self._inspector
