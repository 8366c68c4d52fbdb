"""Rich output formatting for the SafeSQL CLI.

All functions write to a :class:`rich.console.Console` instance (typically
bound to *stderr*) so that machine-readable output on *stdout* is never
polluted with human-readable decoration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

if TYPE_CHECKING:
    from safesql_engine.errors import GatewayError
    from safesql_engine.gateway import PreparedQuery
    from safesql_engine.models.plan import PlanNode
    from safesql_engine.models.result import ExplainResult, QueryResult


def _plan_label(node: PlanNode) -> str:
    label = f"[bold]{escape(node.op)}[/bold]"
    if node.estimated_rows is not None:
        label += f" [dim](rows≈{node.estimated_rows:g})[/dim]"
    if node.total_cost is not None:
        label += f" [dim](cost≈{node.total_cost:g})[/dim]"
    return label


def _add_plan_children(branch: Tree, node: PlanNode) -> None:
    for child in node.children:
        _add_plan_children(branch.add(_plan_label(child)), child)


def display_rows(console: Console, result: QueryResult) -> None:
    """Render masked query rows as a table.

    Parameters
    ----------
    console:
        Rich console to write to.
    result:
        The gateway's query result.
    """
    if not result.rows:
        console.print("[dim]Query returned no rows.[/dim]")
        return

    table = Table(title=f"Rows ({result.rows_returned})", show_lines=False, expand=False)
    for column in result.rows[0]:
        table.add_column(escape(str(column)), overflow="fold")

    for row in result.rows:
        table.add_row(*("[dim]NULL[/dim]" if value is None else escape(str(value)) for value in row.values()))

    console.print(table)
    if result.truncated:
        console.print(f"[yellow]Output truncated at the row cap ({result.row_cap}).[/yellow]")


def display_plan(console: Console, result: ExplainResult) -> None:
    """Render a redacted plan as a tree, noting degraded fidelity."""
    tree = Tree(_plan_label(result.tree), guide_style="dim")
    _add_plan_children(tree, result.tree)
    console.print(tree)
    if result.note:
        console.print(f"[yellow]{result.note}[/yellow]")


def display_prepared(console: Console, prepared: PreparedQuery) -> None:
    """Render the outcome of an offline check: relations and vetted SQL."""
    relations = escape(", ".join(str(r) for r in prepared.relations)) or "(none)"
    console.print(
        Panel(
            f"[bold]Relations:[/bold]  {relations}\n\n{escape(prepared.vetted_sql)}",
            title="[green]Statement accepted[/green]",
            border_style="green",
        )
    )


def display_config(console: Console, config: dict[str, Any]) -> None:
    """Render the gateway config resource."""
    whitelist = escape(", ".join(config.get("whitelist", []))) or "(none)"
    lines = [
        f"[bold]Backend:[/bold]    {config.get('backendType')}",
        f"[bold]Whitelist:[/bold]  {whitelist}",
        f"[bold]Row cap:[/bold]    {config.get('rowCap')}",
    ]
    console.print(Panel("\n".join(lines), title="SafeSQL configuration", border_style="blue"))


def display_error(console: Console, error: GatewayError) -> None:
    console.print(f"[red]{error.kind}:[/red] {escape(error.message)}", highlight=False)
