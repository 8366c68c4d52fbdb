"""Parsed statement and relation reference value objects.

Both are transient, per-request values.  They are frozen so a validated
statement cannot be altered between the validator and the executor.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from safesql_engine.sql_toolkit import Dialect, SqlNode, TableRef


class StatementKind(str, enum.Enum):
    """Coarse classification of a parsed statement."""

    SELECT = "select"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class RelationReference:
    """A relation read by a statement, in its normalized lowercase form."""

    name: str
    schema: str | None = None
    catalog: str | None = None

    @classmethod
    def from_table_ref(cls, ref: TableRef) -> RelationReference:
        return cls(
            name=ref.name.lower(),
            schema=ref.schema.lower() if ref.schema else None,
            catalog=ref.catalog.lower() if ref.catalog else None,
        )

    @property
    def qualified_name(self) -> str:
        """``catalog.schema.name``, ``schema.name`` or ``name``."""
        return ".".join(p for p in (self.catalog, self.schema, self.name) if p)

    def __str__(self) -> str:
        return self.qualified_name


@dataclass(frozen=True, slots=True)
class SqlStatement:
    """A single parsed statement.

    ``tree`` is the toolkit node for the statement; ``text`` is the caller's
    original SQL with surrounding whitespace removed.
    """

    text: str
    tree: SqlNode
    kind: StatementKind
    dialect: Dialect

    @property
    def is_select(self) -> bool:
        return self.kind is StatementKind.SELECT
