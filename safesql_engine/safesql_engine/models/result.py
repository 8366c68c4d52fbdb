"""Results returned by the gateway's ``query`` and ``explain_safe`` operations."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from safesql_engine.models.plan import PlanNode

DEGRADED_PLAN_NOTE = "This is a redacted, degraded-fidelity operator outline."


class PlanFidelity(str, Enum):
    """How closely an explain tree reflects the engine's real plan."""

    ESTIMATED = "estimated"
    DEGRADED = "degraded"


class QueryResult(BaseModel):
    """Masked rows delivered to the caller.  Never longer than the row cap."""

    rows: list[dict[str, Any]] = Field(default_factory=list)
    row_cap: int = Field(..., gt=0)
    truncated: bool = Field(
        default=False,
        description="True when the backend had more rows than the cap allowed.",
    )

    @property
    def rows_returned(self) -> int:
        return len(self.rows)

    def to_dict(self) -> dict[str, Any]:
        return {"rows": self.rows, "rowsReturned": self.rows_returned}


class ExplainResult(BaseModel):
    """A redacted plan tree together with its indented text rendering."""

    tree: PlanNode
    text: str
    fidelity: PlanFidelity

    @property
    def note(self) -> str | None:
        if self.fidelity is PlanFidelity.DEGRADED:
            return DEGRADED_PLAN_NOTE
        return None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "tree": self.tree.to_dict(),
            "text": self.text,
            "fidelity": self.fidelity.value,
        }
        if self.note is not None:
            data["note"] = self.note
        return data
