"""Init command implementation."""

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import ConfigModel, save_config
from ..db import init_database, validate_connection

console = Console()


def init_command(
    config_dir: Path = typer.Option(
        Path.home() / ".config" / "tabvault",
        "--config-dir",
        "-c",
        help="Configuration directory",
    ),
    workspace: Path = typer.Option(
        Path.home() / "TabVault",
        "--workspace",
        "-w",
        help="Workspace root directory (stored images live here)",
    ),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("tabvault", "--db-name", help="Database name"),
    db_user: str = typer.Option("tabvault", "--db-user", help="Database user"),
    image_base_url: str = typer.Option(
        "http://localhost:8000/images/",
        "--image-base-url",
        help="Public URL prefix for stored images",
    ),
) -> None:
    """Initialize Tab Vault configuration and database."""
    console.print(Panel.fit("🗂️ Tab Vault - Initialization", style="bold blue"))

    # Create configuration directory
    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / "config.yaml"

    # Create default configuration
    config = ConfigModel(
        workspace_root=str(workspace),
        postgres={
            "host": db_host,
            "port": db_port,
            "database": db_name,
            "user": db_user,
            "password_env": "TABVAULT_DB_PASSWORD",
        },
        images={"public_base_url": image_base_url},
    )

    # Save configuration
    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path}")

    # Create workspace directory
    images_dir = workspace / config.images.directory
    images_dir.mkdir(parents=True, exist_ok=True)
    console.print(f"✅ Created workspace: {workspace}")

    # Validate database connection
    console.print("\n[bold]Testing database connection...[/bold]")
    db_config = config.postgres.model_dump()

    if not validate_connection(db_config):
        console.print(
            "[red]❌ Database connection failed![/red]\n"
            "Please ensure Postgres (with the pgvector extension) is running and credentials are correct.\n"
            "Set the password via environment variable: [bold]export TABVAULT_DB_PASSWORD=your_password[/bold]"
        )
        raise typer.Exit(1)

    console.print("✅ Database connection successful")

    # Initialize database schema
    console.print("\n[bold]Initializing database schema...[/bold]")
    try:
        init_database(db_config)
        console.print("✅ Database schema initialized")
    except Exception as e:
        console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[green]✅ Tab Vault initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n"
            f"Workspace: {workspace}\n\n"
            f"Next steps:\n"
            f"1. Set database password: [bold]export TABVAULT_DB_PASSWORD=your_password[/bold]\n"
            f"2. Set text-generation key: [bold]export {config.llm.api_key_env}=your_key[/bold]\n"
            f"3. Set embedding key: [bold]export {config.embeddings.api_key_env}=your_key[/bold]\n"
            f"4. Run: [bold]tabvault process-pending[/bold]",
            style="green",
        )
    )
