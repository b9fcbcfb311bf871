"""Process and delete commands."""

from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ..pipeline import BatchResult, ProcessResult
from .common import console, load_checked_config, run_with_processor


def print_stages(result: ProcessResult) -> None:
    """Print the per-stage summary of one run."""
    table = Table(title=f"Capture {result.capture_id}")
    table.add_column("Stage", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Duration", style="yellow")
    table.add_column("Details", style="dim")

    for stage in result.stages:
        if stage["skipped"]:
            status = "[yellow]-[/yellow]"
        elif stage["success"]:
            status = "[green]✓[/green]"
        else:
            status = "[red]✗[/red]"
        duration = f"{stage['duration']:.1f}s" if stage["duration"] > 0 else "-"

        details = stage["error"] or ""
        if stage["success"]:
            if stage["name"] == "scrape":
                details = f"{stage['stats'].get('chars', 0)} chars"
                if stage["stats"].get("rendered"):
                    details += " (rendered)"
            elif stage["name"] == "metadata":
                details = stage["stats"].get("platform") or ""
            elif stage["name"] in ("analysis", "embedding"):
                details = ", ".join(stage["stats"].get("fields", []))

        table.add_row(stage["name"].title(), status, duration, details)

    console.print(table)


def process_command(
    capture_id: str = typer.Argument(..., help="Capture id to (re)process"),
) -> None:
    """Run the enrichment pipeline for one capture."""
    config = load_checked_config()
    result: ProcessResult = run_with_processor(
        config, lambda processor: processor.process_capture(capture_id)
    )

    print_stages(result)
    if result.success:
        console.print(f"[green]✅ Capture processed in {result.duration:.1f}s[/green]")
    else:
        console.print(f"[red]❌ Processing failed: {result.error}[/red]")
        raise typer.Exit(1)


def process_pending_command(
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-l",
        help="Maximum captures to process. Default: pipeline.pending_batch_size",
        min=1,
        max=500,
    ),
) -> None:
    """Process pending captures, oldest first."""
    config = load_checked_config()
    if limit is None:
        limit = config.config.pipeline.pending_batch_size

    batch: BatchResult = run_with_processor(
        config, lambda processor: processor.process_pending_captures(limit)
    )
    if not batch.success:
        console.print(f"[red]❌ Sweep failed: {batch.error}[/red]")
        raise typer.Exit(1)

    table = Table(title="Pending Sweep")
    table.add_column("Capture", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Duration", style="yellow")
    table.add_column("Details", style="dim")
    for result in batch.results:
        table.add_row(
            result.capture_id,
            "[green]✓[/green]" if result.success else "[red]✗[/red]",
            f"{result.duration:.1f}s",
            result.error or ", ".join(result.degraded_stages),
        )
    console.print(table)

    style = "green" if batch.failed == 0 else "yellow"
    console.print(
        Panel(
            f"Processed: {batch.processed}\nFailed: {batch.failed}",
            title="Summary",
            style=style,
        )
    )


def delete_command(
    capture_id: str = typer.Argument(..., help="Capture id to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a capture and its stored image."""
    if not yes:
        typer.confirm(f"Delete capture {capture_id}?", abort=True)

    config = load_checked_config()
    result = run_with_processor(config, lambda processor: processor.delete_capture(capture_id))

    if not result.success:
        console.print(f"[red]❌ {result.error}[/red]")
        raise typer.Exit(1)
    suffix = " and its image" if result.image_deleted else ""
    console.print(f"[green]✅ Deleted capture {capture_id}{suffix}[/green]")
