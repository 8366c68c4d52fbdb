"""Query plan redaction and rendering."""

from __future__ import annotations

from safesql_engine.planner.plan_redactor import degraded_plan, redact_plan, render_plan

__all__ = ["degraded_plan", "redact_plan", "render_plan"]
