"""MCP server creation and transport handlers.

Provides two transport options:
- **stdio** -- standard input/output for local assistants.
- **SSE** -- Server-Sent Events over HTTP for remote access.

Usage::

    # stdio (default):
    safesql mcp serve

    # SSE:
    safesql mcp serve --transport sse --port 3333
"""

from __future__ import annotations

import json
import logging
from typing import Any

from safesql_engine.gateway import SafeSqlGateway

logger = logging.getLogger(__name__)


def _ensure_mcp_installed() -> None:
    """Raise a helpful error if the ``mcp`` extra is not installed."""
    try:
        import mcp  # noqa: F401
    except ImportError:
        raise SystemExit(
            "The 'mcp' extra is required for MCP server support.\nInstall it with: pip install safesql[mcp]"
        )


def _internal_error() -> dict[str, Any]:
    return {"error": {"kind": "InternalError", "message": "Internal error."}}


async def dispatch_tool(gateway: SafeSqlGateway, name: str, arguments: dict[str, Any] | None) -> dict[str, Any]:
    """Run tool *name* and return its JSON result.

    Never raises for tool-level failures: unknown tools and unexpected
    exceptions are reported in the ``error`` field.  Exception details stay
    in the server log.
    """
    from safesql_cli.mcp.tools import TOOL_DISPATCH

    handler = TOOL_DISPATCH.get(name)
    if handler is None:
        return {"error": {"kind": "UnknownTool", "message": f"Unknown tool: {name}"}}

    try:
        return await handler(gateway, sql=(arguments or {}).get("sql"))
    except (SystemExit, KeyboardInterrupt):
        raise
    except Exception:
        logger.error("Tool '%s' failed", name, exc_info=True)
        return _internal_error()


def create_server(gateway: SafeSqlGateway) -> Any:
    """Create and configure the MCP server bound to *gateway*.

    Returns
    -------
    mcp.server.Server
        A configured MCP server ready to run on any transport.
    """
    _ensure_mcp_installed()

    from mcp.server import Server
    from mcp.server.lowlevel.helper_types import ReadResourceContents
    from mcp.types import Resource, TextContent, Tool

    from safesql_cli.mcp.tools import (
        CONFIG_RESOURCE_URI,
        RESOURCE_DEFINITIONS,
        TOOL_DEFINITIONS,
        read_config_resource,
    )

    server = Server("safesql")

    @server.list_tools()  # type: ignore[untyped-decorator]
    async def list_tools() -> list[Tool]:
        return [
            Tool(
                name=defn["name"],
                description=defn["description"],
                inputSchema=defn["inputSchema"],
            )
            for defn in TOOL_DEFINITIONS
        ]

    @server.call_tool()  # type: ignore[untyped-decorator]
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        result = await dispatch_tool(gateway, name, arguments)
        return [
            TextContent(
                type="text",
                text=json.dumps(result, indent=2, default=str),
            )
        ]

    @server.list_resources()  # type: ignore[untyped-decorator]
    async def list_resources() -> list[Resource]:
        return [
            Resource(
                uri=defn["uri"],
                name=defn["name"],
                description=defn["description"],
                mimeType=defn["mimeType"],
            )
            for defn in RESOURCE_DEFINITIONS
        ]

    @server.read_resource()  # type: ignore[untyped-decorator]
    async def read_resource(uri: Any) -> list[ReadResourceContents]:
        if str(uri).rstrip("/") != CONFIG_RESOURCE_URI:
            raise ValueError(f"Unknown resource: {uri}")
        return [ReadResourceContents(content=read_config_resource(gateway), mime_type="application/json")]

    return server


async def run_stdio(gateway: SafeSqlGateway) -> None:
    """Run the MCP server on stdio transport.

    The server reads JSON-RPC messages from stdin and writes responses to
    stdout, so nothing else may write to stdout while it runs.
    """
    _ensure_mcp_installed()

    from mcp.server.stdio import stdio_server

    server = create_server(gateway)

    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


async def run_sse(gateway: SafeSqlGateway, host: str = "127.0.0.1", port: int = 3333) -> None:
    """Run the MCP server on SSE (Server-Sent Events) transport.

    Parameters
    ----------
    gateway:
        The gateway every tool call runs through.
    host:
        Bind address.  Default ``127.0.0.1`` (localhost only).
    port:
        HTTP port.  Default ``3333``.
    """
    _ensure_mcp_installed()

    import uvicorn
    from mcp.server.sse import SseServerTransport
    from starlette.applications import Starlette
    from starlette.routing import Mount, Route

    server = create_server(gateway)
    sse_transport = SseServerTransport("/messages/")

    async def handle_sse(request: Any) -> Any:
        async with sse_transport.connect_sse(request.scope, request.receive, request._send) as streams:
            await server.run(
                streams[0],
                streams[1],
                server.create_initialization_options(),
            )

    app = Starlette(
        debug=False,
        routes=[
            Route("/sse", endpoint=handle_sse),
            Mount("/messages/", app=sse_transport.handle_post_message),
        ],
    )

    config = uvicorn.Config(app, host=host, port=port, log_level="info")
    uv_server = uvicorn.Server(config)
    await uv_server.serve()
