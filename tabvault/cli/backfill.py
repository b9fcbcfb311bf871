"""Backfill commands."""

from typing import Optional

import typer
from rich.table import Table

from ..pipeline import BackfillResult
from .common import console, load_checked_config, run_with_processor

backfill_app = typer.Typer(help="Fill in missing embeddings or display titles")


def _print_result(title: str, result: BackfillResult) -> None:
    if not result.success:
        console.print(f"[red]❌ {title} failed: {result.error}[/red]")
        raise typer.Exit(1)

    table = Table(title=title)
    table.add_column("Processed", style="green")
    table.add_column("Failed", style="red")
    table.add_column("Remaining", style="yellow")
    table.add_row(str(result.processed), str(result.failed), str(result.remaining))
    console.print(table)


@backfill_app.command("embeddings")
def backfill_embeddings(
    limit: Optional[int] = typer.Option(
        None, "--limit", "-l", help="Maximum captures. Default: pipeline.backfill_batch_size", min=1
    ),
) -> None:
    """Generate embeddings for completed captures that have none."""
    config = load_checked_config()
    if limit is None:
        limit = config.config.pipeline.backfill_batch_size
    result = run_with_processor(config, lambda processor: processor.backfill_embeddings(limit))
    _print_result("Embedding Backfill", result)


@backfill_app.command("titles")
def backfill_titles(
    limit: Optional[int] = typer.Option(
        None, "--limit", "-l", help="Maximum captures. Default: pipeline.backfill_batch_size", min=1
    ),
) -> None:
    """Generate display titles for completed captures that have none."""
    config = load_checked_config()
    if limit is None:
        limit = config.config.pipeline.backfill_batch_size
    result = run_with_processor(config, lambda processor: processor.backfill_display_titles(limit))
    _print_result("Display Title Backfill", result)
