"""SQL toolkit protocol definitions.

These define the interface contract that ANY implementation must satisfy.
Consumer code depends on these protocols, never on concrete implementations.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ._types import Dialect, LimitResult, ParseResult, ScopeResult, SqlNode, SqlNodeKind

# ---------------------------------------------------------------------------
# Individual Capability Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class SqlParser(Protocol):
    """Parse SQL strings into AST representations."""

    def parse_one(
        self,
        sql: str,
        dialect: Dialect = Dialect.SQLITE,
    ) -> ParseResult:
        """Parse a single SQL statement.

        Raises:
            SqlParseError: If the SQL is invalid.
        """
        ...

    def parse_multi(
        self,
        sql: str,
        dialect: Dialect = Dialect.SQLITE,
    ) -> ParseResult:
        """Parse potentially multi-statement SQL (separated by ``;``).

        Empty statements (stray semicolons) are dropped with a warning.

        Returns:
            ``ParseResult`` with zero or more statements.

        Raises:
            SqlParseError: If any statement is invalid.
        """
        ...


@runtime_checkable
class SqlRenderer(Protocol):
    """Render AST nodes back to SQL strings."""

    def render(
        self,
        node: SqlNode,
        dialect: Dialect = Dialect.SQLITE,
        *,
        pretty: bool = False,
    ) -> str:
        """Render an AST node to a SQL string.

        Args:
            node: The AST node to render (must have ``raw`` set).
            dialect: Target dialect for rendering.
            pretty: If ``True``, format with indentation and newlines.
        """
        ...


@runtime_checkable
class SqlScopeAnalyzer(Protocol):
    """Resolve the relations a statement reads from."""

    def extract_tables(self, node: SqlNode) -> ScopeResult:
        """Extract every table reference in the statement tree.

        Tables inside joins, subqueries, set operations and CTE bodies are
        included.  Unqualified references to a CTE defined in the same
        statement are excluded.
        """
        ...


@runtime_checkable
class SqlStatementInspector(Protocol):
    """Report what kinds of nodes a statement contains."""

    def contained_kinds(self, node: SqlNode) -> frozenset[SqlNodeKind]:
        """Return every :class:`SqlNodeKind` present anywhere in the tree.

        Walks the full implementation tree, not the depth-limited
        :class:`SqlNode` wrapper, so deeply nested nodes are never missed.
        """
        ...


@runtime_checkable
class SqlRowLimiter(Protocol):
    """Bound the number of rows a query can return."""

    def top_level_bound(self, node: SqlNode, dialect: Dialect = Dialect.SQLITE) -> str | None:
        """Return the SQL of the statement's own LIMIT / FETCH clause, if any."""
        ...

    def wrap_with_limit(
        self,
        node: SqlNode,
        limit: int,
        dialect: Dialect = Dialect.SQLITE,
        *,
        alias: str = "safe_sub",
        source: str | None = None,
    ) -> LimitResult:
        """Wrap the text of *node* as ``SELECT * FROM (<text>) AS <alias> LIMIT <limit>``.

        *source* is the caller's original text for *node*; without it the
        root's ``sql_text`` is used.  The text is never re-rendered.
        Statements that already carry a top-level bound come back exactly as
        given, with ``applied=False``.
        """
        ...


# ---------------------------------------------------------------------------
# Composite Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class SqlToolkit(Protocol):
    """Composite protocol: a complete SQL toolkit implementation.

    This is what consumer code receives from the factory.  It combines all
    individual protocols into a single interface.
    """

    @property
    def parser(self) -> SqlParser:
        ...

    @property
    def renderer(self) -> SqlRenderer:
        ...

    @property
    def scope_analyzer(self) -> SqlScopeAnalyzer:
        ...

    @property
    def row_limiter(self) -> SqlRowLimiter:
        ...

    @property
    def inspector(self) -> SqlStatementInspector:
        ...
