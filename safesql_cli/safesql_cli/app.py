"""SafeSQL CLI application -- Typer-based operator interface.

Provides offline statement checks, query and explain runs against the
configured backend, and the MCP server.  Human-readable output goes to
*stderr* via Rich; ``--json`` writes machine-readable results to *stdout*.

Configuration comes from ``SAFESQL_*`` environment variables (or ``.env``).
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console

from safesql_cli.display import (
    display_config,
    display_error,
    display_plan,
    display_prepared,
    display_rows,
)
from safesql_engine.config import Settings, load_settings
from safesql_engine.errors import GatewayError
from safesql_engine.gateway import SafeSqlGateway
from safesql_engine.telemetry.log_config import configure_logging

T = TypeVar("T")

# ---------------------------------------------------------------------------
# App & global state
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="safesql",
    help="SafeSQL - read-only SQL gateway with whitelisting, row caps and PII masking",
    no_args_is_help=True,
)
console = Console(stderr=True)

mcp_app = typer.Typer(
    name="mcp",
    help="MCP (Model Context Protocol) server for AI assistant integration.",
    no_args_is_help=True,
)
app.add_typer(mcp_app, name="mcp")

# Mutable global options populated by the Typer callback.
_json_output: bool = False


@app.callback()
def _global_options(
    json_mode: bool = typer.Option(
        False,
        "--json/--no-json",
        help="Emit structured JSON to stdout instead of human-readable output.",
    ),
) -> None:
    """Global options applied to every command."""
    global _json_output  # noqa: PLW0603
    _json_output = json_mode


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(payload: dict[str, Any]) -> None:
    sys.stdout.write(json.dumps(payload, indent=2, default=str) + "\n")


def _fail(error: GatewayError) -> typer.Exit:
    """Report *error* and return the exit to raise."""
    if _json_output:
        _write_json({"error": error.to_dict()})
    else:
        display_error(console, error)
    return typer.Exit(code=1)


def _read_sql(sql: str) -> str:
    """``-`` reads the statement from stdin."""
    if sql == "-":
        return sys.stdin.read()
    return sql


def _load_settings(log_level: int) -> Settings:
    try:
        settings = load_settings()
    except ValidationError as exc:
        for err in exc.errors(include_url=False, include_input=False):
            location = ".".join(str(part) for part in err["loc"]) or "settings"
            console.print(f"[red]Invalid configuration ({location}): {err['msg']}[/red]")
        raise typer.Exit(code=1) from exc

    # JSON consumers read stdout only; keep stderr to errors in that mode.
    configure_logging(
        debug=settings.debug,
        structured=settings.structured_logging,
        level=logging.ERROR if _json_output else log_level,
    )
    return settings


def _build_gateway(*, with_executor: bool, log_level: int = logging.WARNING) -> SafeSqlGateway:
    from safesql_engine.executor.sql_executor import build_executor

    settings = _load_settings(log_level)
    try:
        config = settings.to_gateway_config()
    except GatewayError as exc:
        raise _fail(exc) from exc
    executor = build_executor(settings) if with_executor else None
    return SafeSqlGateway(config, executor)


def _run(gateway: SafeSqlGateway, call: Callable[[SafeSqlGateway], Awaitable[T]]) -> T:
    """Run *call* on *gateway* in a fresh event loop, always closing the gateway."""

    async def _main() -> T:
        try:
            return await call(gateway)
        finally:
            await gateway.close()

    try:
        return asyncio.run(_main())
    except GatewayError as exc:
        raise _fail(exc) from exc


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def check(
    sql: str = typer.Argument(..., help="SQL to check, or '-' to read it from stdin."),
) -> None:
    """Validate a statement offline and show the SQL that would run.

    Runs the validator, whitelist and row cap without connecting to the
    backend.
    """
    gateway = _build_gateway(with_executor=False)
    try:
        prepared = gateway.prepare_query(_read_sql(sql))
    except GatewayError as exc:
        raise _fail(exc) from exc

    if _json_output:
        _write_json(
            {
                "relations": [str(r) for r in prepared.relations],
                "sql": prepared.vetted_sql,
            }
        )
    else:
        display_prepared(console, prepared)


@app.command()
def query(
    sql: str = typer.Argument(..., help="SELECT to run, or '-' to read it from stdin."),
) -> None:
    """Run a read-only SELECT and print masked, row-capped results."""
    statement = _read_sql(sql)
    gateway = _build_gateway(with_executor=True)
    result = _run(gateway, lambda gw: gw.query(statement))

    if _json_output:
        _write_json(result.to_dict())
    else:
        display_rows(console, result)


@app.command()
def explain(
    sql: str = typer.Argument(..., help="SELECT to explain, or '-' to read it from stdin."),
) -> None:
    """Print a redacted query plan (operators and estimates only)."""
    statement = _read_sql(sql)
    gateway = _build_gateway(with_executor=True)
    result = _run(gateway, lambda gw: gw.explain_safe(statement))

    if _json_output:
        _write_json(result.to_dict())
    else:
        display_plan(console, result)


@app.command("config")
def show_config() -> None:
    """Print the backend type, whitelist and row cap in effect."""
    gateway = _build_gateway(with_executor=False)
    described = gateway.describe_config()
    if _json_output:
        _write_json(described)
    else:
        display_config(console, described)


@mcp_app.command("serve")
def mcp_serve(
    transport: str = typer.Option(
        "stdio",
        "--transport",
        "-t",
        help="Transport type: 'stdio' (default) or 'sse'.",
    ),
    port: int = typer.Option(
        3333,
        "--port",
        "-p",
        help="Port for SSE transport (ignored for stdio).",
    ),
    host: str = typer.Option(
        "127.0.0.1",
        "--host",
        help="Bind address for SSE transport. Use 0.0.0.0 for all interfaces.",
    ),
) -> None:
    """Start the SafeSQL MCP server.

    Exposes the ``sql.query`` and ``sql.explain_safe`` tools and the
    ``safesql://config`` resource.

    \b
    Assistant config (stdio transport):
        {
          "mcpServers": {
            "safesql": {
              "command": "safesql",
              "args": ["mcp", "serve"],
              "env": {"SAFESQL_SAFE_VIEWS": "safe_users_v"}
            }
          }
        }
    """
    try:
        from safesql_cli.mcp.server import run_sse, run_stdio
    except SystemExit as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    if transport not in ("stdio", "sse"):
        console.print(f"[red]Unknown transport '{transport}'. Use 'stdio' or 'sse'.[/red]")
        raise typer.Exit(code=3)

    gateway = _build_gateway(with_executor=True, log_level=logging.INFO)
    if transport == "stdio":
        # Only print to stderr -- stdout is reserved for MCP protocol.
        console.print("[dim]Starting SafeSQL MCP server (stdio)...[/dim]")
        _run(gateway, run_stdio)
    else:
        console.print(f"[bold]Starting SafeSQL MCP server (SSE) on {host}:{port}[/bold]")
        _run(gateway, lambda gw: run_sse(gw, host=host, port=port))
