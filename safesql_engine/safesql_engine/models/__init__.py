"""Data models passed between gateway stages and returned to callers."""

from __future__ import annotations

from safesql_engine.models.plan import PlanNode
from safesql_engine.models.result import ExplainResult, PlanFidelity, QueryResult
from safesql_engine.models.statement import RelationReference, SqlStatement, StatementKind

__all__ = [
    "ExplainResult",
    "PlanFidelity",
    "PlanNode",
    "QueryResult",
    "RelationReference",
    "SqlStatement",
    "StatementKind",
]
