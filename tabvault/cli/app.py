"""Main CLI application."""

import logging

import typer
from dotenv import load_dotenv
from rich.logging import RichHandler

# Load .env file if it exists
load_dotenv()

from .backfill import backfill_app
from .init import init_command
from .model import model_command
from .process import delete_command, process_command, process_pending_command
from .search import search_command
from .status import status_command
from .usage import usage_command

app = typer.Typer(
    name="tabvault",
    help="Tab Vault - capture enrichment pipeline",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


# Register commands
app.command("init")(init_command)
app.command("process")(process_command)
app.command("process-pending")(process_pending_command)
app.command("search")(search_command)
app.command("delete")(delete_command)
app.command("status")(status_command)
app.command("model")(model_command)
app.command("usage")(usage_command)
app.add_typer(backfill_app, name="backfill", help="Fill in missing embeddings or titles")


if __name__ == "__main__":
    app()
