"""SQL toolkit shared types.

Every type here is implementation-agnostic. Consumer code operates on these
types exclusively. The backing implementation (SQLGlot today) converts
to/from its native types internally.

ZERO dependency on any SQL parsing library.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# Dialect
# ---------------------------------------------------------------------------


class Dialect(str, enum.Enum):
    """Supported SQL dialects, one per execution backend."""

    SQLITE = "sqlite"
    POSTGRES = "postgres"


# ---------------------------------------------------------------------------
# AST Node Types
# ---------------------------------------------------------------------------


class SqlNodeKind(str, enum.Enum):
    """Enumeration of SQL node types that consumer code needs to inspect.

    This is NOT a 1:1 mapping to any parser's internal types -- it is the
    subset the gateway actually uses.  Kept minimal to reduce coupling.
    """

    # Statement types
    SELECT = "select"
    SET_OPERATION = "set_operation"
    CREATE = "create"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    DROP = "drop"
    ALTER = "alter"
    TRUNCATE = "truncate"
    MERGE = "merge"
    GRANT = "grant"
    REVOKE = "revoke"
    COMMAND = "command"
    PRAGMA = "pragma"

    # Clause types
    WITH = "with"
    CTE = "cte"
    FROM = "from"
    JOIN = "join"
    WHERE = "where"
    INTO = "into"
    LIMIT = "limit"

    # Expression types
    TABLE = "table"
    COLUMN = "column"
    STAR = "star"
    ALIAS = "alias"
    SUBQUERY = "subquery"

    # Catch-all
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Reference Types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TableRef:
    """A table reference as written in the statement.

    Immutable.  Deterministic ``__hash__`` and ``__eq__`` via *frozen=True*.
    """

    catalog: str | None = None
    schema: str | None = None
    name: str = ""

    @property
    def fully_qualified(self) -> str:
        """Return ``catalog.schema.name``, omitting None parts."""
        parts = [p for p in (self.catalog, self.schema, self.name) if p]
        return ".".join(parts)

    def __str__(self) -> str:
        return self.fully_qualified


# ---------------------------------------------------------------------------
# AST Wrapper
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SqlNode:
    """Opaque wrapper around an AST node.

    Consumer code can inspect ``kind``, ``name``, ``children`` and
    ``sql_text``.  The ``raw`` field holds the implementation-specific
    object (e.g. ``sqlglot.exp.Expression``) for escape-hatch operations
    such as rendering and rewriting.  ``raw`` is excluded from ``__eq__`` /
    ``__hash__`` so that two nodes wrapping different implementation
    objects compare equal when their logical content matches.
    """

    kind: SqlNodeKind
    name: str = ""
    children: tuple[SqlNode, ...] = ()
    sql_text: str = ""
    raw: Any = field(default=None, repr=False, compare=False, hash=False)

    # -- traversal helpers ---------------------------------------------------

    def find_all(self, kind: SqlNodeKind) -> list[SqlNode]:
        """Recursively find all descendant nodes of the given kind."""
        return [node for node in self.walk()[1:] if node.kind == kind]

    def find(self, kind: SqlNodeKind) -> SqlNode | None:
        """Find the first descendant of *kind* (depth-first), or ``None``."""
        for child in self.children:
            if child.kind == kind:
                return child
            found = child.find(kind)
            if found is not None:
                return found
        return None

    def walk(self) -> list[SqlNode]:
        """Return a flat list of this node and all descendants (pre-order DFS)."""
        result: list[SqlNode] = []
        self._walk(result)
        return result

    def _walk(self, acc: list[SqlNode]) -> None:
        acc.append(self)
        for child in self.children:
            child._walk(acc)


# ---------------------------------------------------------------------------
# Result Containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Result of parsing a SQL string.

    ``statements`` handles multi-statement SQL (separated by ``;``).
    """

    statements: tuple[SqlNode, ...]
    dialect: Dialect
    warnings: list[str] = field(default_factory=list)

    @property
    def single(self) -> SqlNode:
        """Return the single statement, or raise if zero / multiple."""
        if len(self.statements) != 1:
            raise ValueError(f"Expected exactly 1 statement, got {len(self.statements)}")
        return self.statements[0]


@dataclass(frozen=True, slots=True)
class ScopeResult:
    """Table extraction result.

    ``referenced_tables`` has CTE names excluded -- the key feature that
    prevents CTEs from appearing as external relations.
    """

    referenced_tables: tuple[TableRef, ...]
    cte_names: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class LimitResult:
    """Result of bounding a query's result size."""

    sql: str
    applied: bool
    existing_bound: str | None = None


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SqlToolkitError(Exception):
    """Base exception for all sql_toolkit errors."""


class SqlParseError(SqlToolkitError):
    """SQL could not be parsed."""
