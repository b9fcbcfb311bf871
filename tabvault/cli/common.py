"""Helpers shared by the CLI commands."""

import asyncio
from typing import Awaitable, Callable, TypeVar

import typer
from rich.console import Console

from ..config import Config
from ..db import close_async_pool, validate_connection
from ..pipeline import CaptureProcessor, build_processor

console = Console()

T = TypeVar("T")


def load_checked_config() -> Config:
    """Load configuration and make sure the database is reachable."""
    config = Config()
    try:
        config.config  # parse now so errors surface before connecting
    except FileNotFoundError:
        console.print("[red]Config file not found. Run 'tabvault init' first.[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print("[dim]Checking database connection...[/dim]")
    if not validate_connection(config.get_db_config()):
        console.print("[red]❌ Database connection failed![/red]")
        console.print("Please check your database configuration and ensure Postgres is running.")
        raise typer.Exit(1)
    return config


def run_with_processor(config: Config, work: Callable[[CaptureProcessor], Awaitable[T]]) -> T:
    """Build a processor, run ``work`` with it, then drain and close everything."""

    async def _run() -> T:
        processor = await build_processor(config)
        try:
            return await work(processor)
        finally:
            await processor.close()
            await close_async_pool()

    try:
        return asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        raise typer.Exit(1)
