"""MCP tool implementations for SafeSQL.

Each tool is a plain async function that:
1. Receives the process-wide :class:`SafeSqlGateway` and the tool arguments.
2. Returns a JSON-serializable ``dict[str, Any]``.
3. Reports gateway failures as ``{"error": {"kind": ..., "message": ...}}``
   rather than raising.

The ``TOOL_DEFINITIONS`` list provides JSON Schema descriptions for tool
registration with the MCP server in :mod:`safesql_cli.mcp.server`.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from safesql_engine.errors import GatewayError, ParseError
from safesql_engine.gateway import SafeSqlGateway

logger = logging.getLogger(__name__)

CONFIG_RESOURCE_URI = "safesql://config"


def _require_sql(sql: Any) -> str:
    if not isinstance(sql, str):
        raise ParseError("Argument 'sql' must be a string.")
    return sql


# ---------------------------------------------------------------------------
# Tool: sql.query
# ---------------------------------------------------------------------------


async def sql_query(gateway: SafeSqlGateway, sql: Any = "") -> dict[str, Any]:
    """Run a read-only SELECT and return masked, row-capped results."""
    try:
        result = await gateway.query(_require_sql(sql))
    except GatewayError as exc:
        return {"error": exc.to_dict()}
    return result.to_dict()


# ---------------------------------------------------------------------------
# Tool: sql.explain_safe
# ---------------------------------------------------------------------------


async def sql_explain_safe(gateway: SafeSqlGateway, sql: Any = "") -> dict[str, Any]:
    """Return a redacted plan tree and its text outline."""
    try:
        result = await gateway.explain_safe(_require_sql(sql))
    except GatewayError as exc:
        return {"error": exc.to_dict()}
    return result.to_dict()


# ---------------------------------------------------------------------------
# Resource: safesql://config
# ---------------------------------------------------------------------------


def read_config_resource(gateway: SafeSqlGateway) -> str:
    """The config resource body: backend type, whitelist and row cap as JSON."""
    return json.dumps(gateway.describe_config(), indent=2)


RESOURCE_DEFINITIONS: list[dict[str, Any]] = [
    {
        "uri": CONFIG_RESOURCE_URI,
        "name": "db-config",
        "description": "Database type and whitelisted views",
        "mimeType": "application/json",
    },
]

_SQL_INPUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "sql": {
            "type": "string",
            "description": "A single SELECT statement.",
        },
    },
    "required": ["sql"],
}

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "name": "sql.query",
        "description": "Run a read-only SELECT on whitelisted views; masks PII; caps rows.",
        "inputSchema": _SQL_INPUT_SCHEMA,
    },
    {
        "name": "sql.explain_safe",
        "description": (
            "Show a redacted query plan (operator tree + estimates), "
            "without revealing table/index names."
        ),
        "inputSchema": _SQL_INPUT_SCHEMA,
    },
]

TOOL_DISPATCH: dict[str, Any] = {
    "sql.query": sql_query,
    "sql.explain_safe": sql_explain_safe,
}
