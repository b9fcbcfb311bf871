"""Usage command implementation."""

import asyncio

import typer
from rich.table import Table

from ..db import PostgresUsageLedger, close_async_pool, get_async_pool
from ..exceptions import PersistenceError
from ..models import UsageSummary
from .common import console, load_checked_config


def usage_command(
    days: int = typer.Option(30, "--days", "-d", min=0, help="Days to look back (0 = today only)"),
) -> None:
    """Show token usage and cost of backend calls."""
    config = load_checked_config()

    async def _run() -> UsageSummary:
        pool = await get_async_pool(config.get_db_config())
        try:
            return await PostgresUsageLedger(pool).summary(days_back=days)
        finally:
            await close_async_pool()

    try:
        summary = asyncio.run(_run())
    except PersistenceError as e:
        console.print(f"[red]Failed to read usage: {e}[/red]")
        raise typer.Exit(1)

    period = "today" if days == 0 else f"last {days} days"
    console.print(
        f"[bold]{period}:[/bold] {summary.requests} calls, "
        f"{summary.total_tokens:,} tokens, ${summary.cost_dollars:.4f}"
    )

    if not summary.requests:
        console.print("[dim]No usage recorded.[/dim]")
        return

    by_service = Table(title="By Service")
    by_service.add_column("Service", style="cyan")
    by_service.add_column("Calls", justify="right")
    by_service.add_column("Input", justify="right")
    by_service.add_column("Output", justify="right")
    by_service.add_column("Cost ($)", justify="right", style="green")
    for row in summary.by_service:
        by_service.add_row(
            row.service,
            str(row.requests),
            f"{row.input_tokens:,}",
            f"{row.output_tokens:,}",
            f"{row.cost_cents / 100:.4f}",
        )
    console.print(by_service)

    daily = Table(title="Daily")
    daily.add_column("Day", style="cyan")
    daily.add_column("Calls", justify="right")
    daily.add_column("Tokens", justify="right")
    daily.add_column("Cost ($)", justify="right", style="green")
    for row in summary.daily:
        daily.add_row(
            row.day.isoformat(), str(row.requests), f"{row.total_tokens:,}", f"{row.cost_cents / 100:.4f}"
        )
    console.print(daily)
