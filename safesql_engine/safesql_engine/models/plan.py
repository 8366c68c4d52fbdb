"""Redacted query plan tree.

A :class:`PlanNode` carries only what is safe to show: an operator label and
the planner's own estimates.  Relation names, index names, predicates and
literals never reach this model.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PlanNode(BaseModel):
    """One operator in a redacted plan tree."""

    model_config = ConfigDict(frozen=True)

    op: str = Field(..., min_length=1, description="Generic operator label, e.g. 'Seq Scan'.")
    estimated_rows: float | None = Field(
        default=None,
        description="Planner row estimate, if the engine reported one.",
    )
    total_cost: float | None = Field(
        default=None,
        description="Planner total cost estimate, if the engine reported one.",
    )
    children: tuple[PlanNode, ...] = Field(default=())

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the wire shape, omitting absent estimates and leaf children."""
        data: dict[str, Any] = {"op": self.op}
        if self.estimated_rows is not None:
            data["estimatedRows"] = _compact_number(self.estimated_rows)
        if self.total_cost is not None:
            data["totalCost"] = _compact_number(self.total_cost)
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data

    def walk(self) -> list[PlanNode]:
        """Return this node and all descendants in pre-order."""
        nodes = [self]
        for child in self.children:
            nodes.extend(child.walk())
        return nodes


def _compact_number(value: float) -> int | float:
    if float(value).is_integer():
        return int(value)
    return value
