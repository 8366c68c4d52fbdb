"""Tests for the MCP tool implementations.

The tools are exercised directly (without MCP transport) over a gateway
backed by an in-memory executor.  Server wiring is checked only when the
``mcp`` extra is installed.
"""

from __future__ import annotations

import asyncio
import json

import pytest

from safesql_cli.mcp.server import dispatch_tool
from safesql_cli.mcp.tools import (
    CONFIG_RESOURCE_URI,
    RESOURCE_DEFINITIONS,
    TOOL_DEFINITIONS,
    TOOL_DISPATCH,
    read_config_resource,
    sql_explain_safe,
    sql_query,
)

ROWS = [
    {"id": 1, "email": "john.doe@example.com"},
    {"id": 2, "email": "al@example.org"},
]


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


class TestDefinitions:
    def test_tool_names(self):
        assert [d["name"] for d in TOOL_DEFINITIONS] == ["sql.query", "sql.explain_safe"]

    def test_every_definition_is_dispatchable(self):
        assert {d["name"] for d in TOOL_DEFINITIONS} == set(TOOL_DISPATCH)

    def test_input_schema_requires_sql(self):
        for defn in TOOL_DEFINITIONS:
            assert defn["inputSchema"]["required"] == ["sql"]
            assert defn["inputSchema"]["properties"]["sql"]["type"] == "string"

    def test_config_resource_definition(self):
        (resource,) = RESOURCE_DEFINITIONS
        assert resource["uri"] == CONFIG_RESOURCE_URI == "safesql://config"
        assert resource["mimeType"] == "application/json"


# ---------------------------------------------------------------------------
# sql.query
# ---------------------------------------------------------------------------


class TestSqlQuery:
    def test_masked_rows(self, make_gateway):
        gateway, _ = make_gateway(rows=ROWS)
        result = asyncio.run(sql_query(gateway, sql="SELECT id, email FROM safe_users_v"))
        assert result == {
            "rows": [{"id": 1, "email": "j******e@*******.com"}, {"id": 2, "email": "**@*******.org"}],
            "rowsReturned": 2,
        }

    def test_row_cap(self, make_gateway):
        gateway, _ = make_gateway(rows=[{"id": i} for i in range(10)], row_cap=4)
        result = asyncio.run(sql_query(gateway, sql="SELECT id FROM safe_users_v"))
        assert result["rowsReturned"] == 4

    def test_forbidden_relation_is_reported(self, make_gateway):
        gateway, executor = make_gateway(rows=ROWS)
        result = asyncio.run(sql_query(gateway, sql="SELECT * FROM secret_table"))
        assert result["error"]["kind"] == "ForbiddenRelationError"
        assert result["error"]["relation"] == "secret_table"
        assert result["error"]["allowed"] == ["safe_users_v"]
        assert executor.fetch_calls == []

    def test_multiple_statements(self, make_gateway):
        gateway, _ = make_gateway()
        result = asyncio.run(sql_query(gateway, sql="SELECT 1; SELECT 2"))
        assert result == {"error": {"kind": "MultipleStatementsError", "message": "Only one statement allowed."}}

    def test_non_string_sql(self, make_gateway):
        gateway, _ = make_gateway()
        result = asyncio.run(sql_query(gateway, sql=None))
        assert result["error"]["kind"] == "ParseError"


# ---------------------------------------------------------------------------
# sql.explain_safe
# ---------------------------------------------------------------------------


class TestSqlExplainSafe:
    def test_degraded(self, make_gateway):
        gateway, _ = make_gateway()
        result = asyncio.run(sql_explain_safe(gateway, sql="SELECT id FROM safe_users_v"))
        assert result["tree"] == {"op": "Select", "children": [{"op": "Scan"}]}
        assert result["text"] == "- Select\n  - Scan"
        assert result["fidelity"] == "degraded"
        assert "redacted" in result["note"]

    def test_not_select(self, make_gateway):
        gateway, _ = make_gateway()
        result = asyncio.run(sql_explain_safe(gateway, sql="UPDATE safe_users_v SET email = NULL"))
        assert result["error"]["kind"] == "NotSelectError"


# ---------------------------------------------------------------------------
# Dispatch & resource
# ---------------------------------------------------------------------------


class TestDispatch:
    def test_routes_by_name(self, make_gateway):
        gateway, _ = make_gateway(rows=ROWS)
        result = asyncio.run(dispatch_tool(gateway, "sql.query", {"sql": "SELECT id FROM safe_users_v"}))
        assert result["rowsReturned"] == 2

    def test_unknown_tool(self, make_gateway):
        gateway, _ = make_gateway()
        result = asyncio.run(dispatch_tool(gateway, "sql.drop_everything", {}))
        assert result["error"]["kind"] == "UnknownTool"

    def test_missing_arguments(self, make_gateway):
        gateway, _ = make_gateway()
        result = asyncio.run(dispatch_tool(gateway, "sql.query", None))
        assert result["error"]["kind"] == "ParseError"

    def test_unexpected_failure_is_internal_error(self, make_gateway):
        gateway, _ = make_gateway(error=ConnectionResetError("10.0.0.5:5432 password=hunter2"))
        result = asyncio.run(dispatch_tool(gateway, "sql.query", {"sql": "SELECT id FROM safe_users_v"}))
        assert result == {"error": {"kind": "InternalError", "message": "Internal error."}}

    def test_config_resource(self, make_gateway):
        gateway, _ = make_gateway(whitelist=frozenset({"safe_users_v", "safe_orders_v"}), row_cap=50)
        assert json.loads(read_config_resource(gateway)) == {
            "backendType": "embedded",
            "whitelist": ["safe_orders_v", "safe_users_v"],
            "rowCap": 50,
        }


# ---------------------------------------------------------------------------
# Server wiring (requires the mcp extra)
# ---------------------------------------------------------------------------


class TestServer:
    def test_list_tools_and_resources(self, make_gateway):
        pytest.importorskip("mcp")
        from mcp import types

        from safesql_cli.mcp.server import create_server

        gateway, _ = make_gateway()
        server = create_server(gateway)

        async def _list():
            tools = await server.request_handlers[types.ListToolsRequest](types.ListToolsRequest(method="tools/list"))
            resources = await server.request_handlers[types.ListResourcesRequest](
                types.ListResourcesRequest(method="resources/list")
            )
            return tools.root.tools, resources.root.resources

        tools, resources = asyncio.run(_list())
        assert [tool.name for tool in tools] == ["sql.query", "sql.explain_safe"]
        assert [str(resource.uri).rstrip("/") for resource in resources] == [CONFIG_RESOURCE_URI]
