"""Unit tests for safesql_engine.planner.plan_redactor."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from safesql_engine.models.plan import PlanNode
from safesql_engine.planner.plan_redactor import degraded_plan, redact_plan, render_plan

POSTGRES_PLAN = [
    {
        "Plan": {
            "Node Type": "Hash Join",
            "Join Type": "Inner",
            "Startup Cost": 1.09,
            "Total Cost": 25.5,
            "Plan Rows": 120,
            "Hash Cond": "(o.user_id = u.id)",
            "Plans": [
                {
                    "Node Type": "Seq Scan",
                    "Relation Name": "orders",
                    "Alias": "o",
                    "Total Cost": 18.0,
                    "Plan Rows": 800,
                    "Filter": "(total > '100'::numeric)",
                },
                {
                    "Node Type": "Hash",
                    "Total Cost": 1.05,
                    "Plan Rows": 5,
                    "Plans": [
                        {
                            "Node Type": "Index Scan",
                            "Index Name": "users_email_idx",
                            "Relation Name": "users",
                            "Index Cond": "(email = 'john.doe@example.com'::text)",
                            "Total Cost": 1.05,
                            "Plan Rows": 5,
                        }
                    ],
                },
            ],
        }
    }
]


# ---------------------------------------------------------------------------
# redact_plan
# ---------------------------------------------------------------------------


class TestRedactPlan:
    def test_keeps_operators_and_estimates(self):
        tree = redact_plan(POSTGRES_PLAN)
        assert tree.op == "Hash Join"
        assert tree.estimated_rows == 120
        assert tree.total_cost == 25.5
        assert [child.op for child in tree.children] == ["Seq Scan", "Hash"]
        assert tree.children[1].children[0].op == "Index Scan"

    def test_drops_names_predicates_and_literals(self):
        serialised = str(redact_plan(POSTGRES_PLAN).to_dict())
        for secret in ("orders", "users", "users_email_idx", "john.doe", "100", "user_id", "Inner"):
            assert secret not in serialised

    def test_accepts_single_document(self):
        assert redact_plan(POSTGRES_PLAN[0]).op == "Hash Join"

    def test_accepts_bare_node(self):
        assert redact_plan({"Node Type": "Result"}).op == "Result"

    def test_missing_operator_is_unknown(self):
        tree = redact_plan({"Plan Rows": 3})
        assert tree.op == "Unknown"
        assert tree.estimated_rows == 3

    def test_non_numeric_estimates_dropped(self):
        tree = redact_plan({"Node Type": "Seq Scan", "Plan Rows": "12", "Total Cost": True})
        assert tree.estimated_rows is None
        assert tree.total_cost is None

    @pytest.mark.parametrize("raw", [[], "Seq Scan on users", 42])
    def test_invalid_documents(self, raw):
        with pytest.raises(ValueError):
            redact_plan(raw)

    def test_redacted_shape_round_trips(self):
        data = redact_plan(POSTGRES_PLAN).to_dict()
        assert redact_plan(data).to_dict() == data


# ---------------------------------------------------------------------------
# degraded_plan
# ---------------------------------------------------------------------------


class TestDegradedPlan:
    def test_shape(self):
        assert degraded_plan().to_dict() == {"op": "Select", "children": [{"op": "Scan"}]}

    def test_no_estimates(self):
        assert all(node.estimated_rows is None and node.total_cost is None for node in degraded_plan().walk())


# ---------------------------------------------------------------------------
# render_plan
# ---------------------------------------------------------------------------


class TestRenderPlan:
    def test_degraded(self):
        assert render_plan(degraded_plan()) == "- Select\n  - Scan"

    def test_estimates(self):
        text = render_plan(redact_plan(POSTGRES_PLAN))
        assert text.splitlines() == [
            "- Hash Join (rows≈120) (cost≈25.5)",
            "  - Seq Scan (rows≈800) (cost≈18)",
            "  - Hash (rows≈5) (cost≈1.05)",
            "    - Index Scan (rows≈5) (cost≈1.05)",
        ]

    def test_rows_only(self):
        assert render_plan(PlanNode(op="Result", estimated_rows=1)) == "- Result (rows≈1)"

    def test_cost_only(self):
        assert render_plan(PlanNode(op="Result", total_cost=0.01)) == "- Result (cost≈0.01)"


# ---------------------------------------------------------------------------
# PlanNode
# ---------------------------------------------------------------------------


class TestPlanNode:
    def test_frozen(self):
        node = PlanNode(op="Scan")
        with pytest.raises(ValidationError):
            node.op = "Other"  # type: ignore[misc]

    def test_empty_op_rejected(self):
        with pytest.raises(ValidationError):
            PlanNode(op="")

    def test_walk_is_pre_order(self):
        assert [n.op for n in redact_plan(POSTGRES_PLAN).walk()] == ["Hash Join", "Seq Scan", "Hash", "Index Scan"]
