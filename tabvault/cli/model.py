"""Model selection command implementation."""

import asyncio
from typing import Optional

import typer
from rich.table import Table

from ..config import MODELS, get_available_models
from ..db import SettingsStore, close_async_pool, get_async_pool
from .common import console, load_checked_config


def model_command(
    key: Optional[str] = typer.Argument(None, help="Model key to select"),
) -> None:
    """Show the selectable models, or select one for future captures."""
    if key is not None and key not in MODELS:
        console.print(f"[red]Unknown model: {key}[/red]")
        console.print(f"Available: {', '.join(MODELS)}")
        raise typer.Exit(1)

    config = load_checked_config()
    default_model = config.config.llm.default_model

    async def _run() -> str:
        pool = await get_async_pool(config.get_db_config())
        try:
            store = SettingsStore(pool, default_model=default_model)
            if key is not None:
                await store.set_ai_model(key)
            return await store.get_ai_model()
        finally:
            await close_async_pool()

    current = asyncio.run(_run())

    if key is not None:
        console.print(f"✅ Selected model: [bold]{MODELS[current].name}[/bold] ({current})")
        return

    table = Table(title="Text-generation Models")
    table.add_column("", width=1)
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("Provider", style="dim")
    table.add_column("Est. $/capture", justify="right")
    for model in get_available_models():
        table.add_row(
            "*" if model["key"] == current else "",
            model["key"],
            model["name"],
            model["provider"],
            f"{model['estimated_cost_per_capture']:.4f}",
        )
    console.print(table)
