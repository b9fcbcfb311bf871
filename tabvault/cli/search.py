"""Search command implementation."""

import typer
from rich.table import Table

from .common import console, load_checked_config, run_with_processor


def search_command(
    query: str = typer.Argument(..., help="Search text"),
    threshold: float = typer.Option(
        0.7, "--threshold", "-t", help="Minimum similarity (0-1)", min=0.0, max=1.0
    ),
    count: int = typer.Option(10, "--count", "-n", help="Maximum results", min=1, max=100),
) -> None:
    """Semantic search over processed captures."""
    config = load_checked_config()
    if not config.get_embedding_config().get("api_key"):
        console.print("[red]No embedding API key configured; search needs embeddings.[/red]")
        raise typer.Exit(1)

    matches = run_with_processor(
        config, lambda processor: processor.search(query, threshold=threshold, count=count)
    )
    if not matches:
        console.print("[yellow]No matching captures.[/yellow]")
        return

    table = Table(title=f"Results for '{query}'")
    table.add_column("Score", style="green")
    table.add_column("Title", style="cyan")
    table.add_column("Category", style="magenta")
    table.add_column("Tags", style="dim")
    table.add_column("URL", style="blue")
    for match in matches:
        table.add_row(
            f"{match.similarity:.2f}",
            match.display_title or match.title or "-",
            match.category or "-",
            ", ".join(match.tags),
            match.url,
        )
    console.print(table)
