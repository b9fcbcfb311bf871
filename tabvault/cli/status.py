"""Status command implementation."""

import typer
from rich.table import Table

from ..config import Config, get_model_config
from ..db import validate_connection
from .common import console


def status_command() -> None:
    """Show configuration and backend availability."""
    config = Config()
    try:
        settings = config.config
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    llm_config = config.get_llm_config()
    embedding_config = config.get_embedding_config()
    db_ok = validate_connection(config.get_db_config())

    def state(ok: bool, detail: str = "") -> str:
        mark = "[green]✓[/green]" if ok else "[red]✗[/red]"
        return f"{mark} {detail}".strip()

    table = Table(title="Tab Vault Status")
    table.add_column("Component", style="cyan")
    table.add_column("State", style="bold")
    table.add_column("Details", style="dim")

    table.add_row("Config", state(True), str(config.config_path))
    table.add_row(
        "Database",
        state(db_ok),
        f"{settings.postgres.user}@{settings.postgres.host}:{settings.postgres.port}/{settings.postgres.database}",
    )
    table.add_row(
        "Text generation",
        state(bool(llm_config.get("api_key")), llm_config.get("provider", "")),
        f"default model {get_model_config(settings.llm.default_model).name} ({llm_config.get('api_key_env')})",
    )
    table.add_row(
        "Embeddings",
        state(bool(embedding_config.get("api_key"))),
        f"{settings.embeddings.model}, {settings.embeddings.dimensions} dims ({embedding_config.get('api_key_env')})",
    )
    table.add_row(
        "Rendering fallback",
        state(settings.scraper.render_fallback, "on" if settings.scraper.render_fallback else "off"),
        "playwright chromium",
    )
    table.add_row("Images", state(True), str(config.images_dir))
    console.print(table)

    if not db_ok:
        raise typer.Exit(1)
