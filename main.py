import logging

import typer
import uvicorn
from rich.console import Console
from sqlalchemy.engine import Engine

from api import create_app
from config import Settings
from database import initialize_database
from errors import ConfigError, DatabaseConnectionError

APP_NAME = "Books API"

console = Console()
app = typer.Typer(help=f"{APP_NAME} command line.", add_completion=False)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _startup() -> tuple[Settings, Engine]:
    """Load configuration and verify the database, exiting non-zero on failure."""
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        console.print(f"[bold red]Configuration error:[/] {e}")
        raise typer.Exit(code=1)

    _configure_logging(settings.log_level)

    try:
        engine = initialize_database(settings)
    except DatabaseConnectionError as e:
        console.print(f"[bold red]Database error:[/] {e}")
        raise typer.Exit(code=1)
    return settings, engine


@app.command("serve")
def cli_serve(
    host: str = typer.Option(None, "--host", help="Interface to bind (defaults to API_HOST)"),
    port: int = typer.Option(None, "--port", help="Port to listen on (defaults to API_PORT)"),
):
    """Start the HTTP server."""
    settings, engine = _startup()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print("[green]Database Initialized[/]")
    console.print(f"[green]Serving on http://{host}:{port}/[/]")
    uvicorn.run(create_app(settings, engine), host=host, port=port, log_level=settings.log_level.lower())


@app.command("check-db")
def cli_check_db():
    """Connect to the configured database and run the liveness probe."""
    _, engine = _startup()
    engine.dispose()
    console.print("[green]Database is reachable.[/]")


if __name__ == "__main__":
    app()
