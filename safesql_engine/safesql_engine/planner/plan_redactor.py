"""Plan redactor -- reduce an engine plan to operators and estimates.

PostgreSQL's ``EXPLAIN (FORMAT JSON)`` output is a list holding one
``{"Plan": {...}}`` document.  Each plan node carries its operator in
``"Node Type"``, estimates in ``"Plan Rows"`` and ``"Total Cost"``, and
sub-plans in ``"Plans"``.  Everything else (``"Relation Name"``,
``"Index Name"``, ``"Filter"``, ``"Output"``, aliases, literals) is
dropped: only allow-listed fields are ever copied.

When the engine exposes no plan, :func:`degraded_plan` returns a fixed
``Select -> Scan`` outline with no estimates.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from safesql_engine.models.plan import PlanNode

logger = logging.getLogger(__name__)

_OP_KEYS = ("Node Type", "op")
_ROWS_KEYS = ("Plan Rows", "estimatedRows")
_COST_KEYS = ("Total Cost", "totalCost")
_CHILDREN_KEYS = ("Plans", "children")

_UNKNOWN_OP = "Unknown"


def _first_present(node: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in node:
            return node[key]
    return None


def _estimate(value: Any) -> float | None:
    # bool is an int subclass; a true/false estimate is not an estimate.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _unwrap_document(raw: Any) -> Mapping[str, Any]:
    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        if not raw:
            raise ValueError("Plan document is empty")
        raw = raw[0]
    if not isinstance(raw, Mapping):
        raise ValueError(f"Plan document must be a mapping, got {type(raw).__name__}")
    plan = raw.get("Plan")
    if isinstance(plan, Mapping):
        return plan
    return raw


def _redact_node(node: Mapping[str, Any]) -> PlanNode:
    op = _first_present(node, _OP_KEYS)
    children_raw = _first_present(node, _CHILDREN_KEYS) or []
    children = tuple(_redact_node(child) for child in children_raw if isinstance(child, Mapping))
    return PlanNode(
        op=str(op) if op else _UNKNOWN_OP,
        estimated_rows=_estimate(_first_present(node, _ROWS_KEYS)),
        total_cost=_estimate(_first_present(node, _COST_KEYS)),
        children=children,
    )


def redact_plan(raw: Any) -> PlanNode:
    """Redact an engine plan into a :class:`PlanNode` tree.

    Parameters
    ----------
    raw:
        A PostgreSQL ``EXPLAIN (FORMAT JSON)`` result (the list, a single
        ``{"Plan": ...}`` document, or a bare plan node).

    Returns
    -------
    PlanNode
        Root of the redacted tree.  Child order is preserved.

    Raises
    ------
    ValueError
        If *raw* is not a plan document.
    """
    tree = _redact_node(_unwrap_document(raw))
    logger.debug("Redacted plan with %d node(s)", len(tree.walk()))
    return tree


def degraded_plan() -> PlanNode:
    """Return the fixed outline used when no real plan is available."""
    return PlanNode(op="Select", children=(PlanNode(op="Scan"),))


def render_plan(node: PlanNode) -> str:
    """Render *node* as an indented outline, one line per operator.

    Each line is ``"  " * depth + "- <op>"`` followed by ``" (rows≈N)"`` and
    ``" (cost≈N)"`` for whichever estimates are present.
    """
    lines: list[str] = []
    _render_into(node, 0, lines)
    return "\n".join(lines)


def _render_into(node: PlanNode, depth: int, lines: list[str]) -> None:
    line = f"{'  ' * depth}- {node.op}"
    if node.estimated_rows is not None:
        line += f" (rows≈{_format_estimate(node.estimated_rows)})"
    if node.total_cost is not None:
        line += f" (cost≈{_format_estimate(node.total_cost)})"
    lines.append(line)
    for child in node.children:
        _render_into(child, depth + 1, lines)


def _format_estimate(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    return str(value)
