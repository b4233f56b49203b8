"""tunetransfer CLI - Main application entry point and app structure."""

import asyncio
from typing import Annotated

from rich.console import Console
import typer

from tunetransfer import __version__
from tunetransfer.application.use_cases import sync_library
from tunetransfer.config import (
    Settings,
    get_logger,
    load_settings,
    log_startup_info,
    setup_loguru_logger,
)
from tunetransfer.domain.errors import ConfigurationError, SyncError
from tunetransfer.infrastructure.auth import SpotifySessionProvider
from tunetransfer.infrastructure.cli.ui import (
    EXIT_CONFIG_ERROR,
    EXIT_SYNC_FAILED,
    command_error_handler,
    display_sync_result,
)
from tunetransfer.infrastructure.connectors import SpotifyConnector
from tunetransfer.infrastructure.persistence.database import create_db_engine, init_db

console = Console(width=100)
logger = get_logger(__name__)

app = typer.Typer(
    help=f"🎵 tunetransfer v{__version__} - Move your Spotify library",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
)


def _settings(ctx: typer.Context) -> Settings:
    """Load settings once per command and configure logging from them."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        console.print(f"[bold red]✗ Configuration error:[/bold red] {e.message}")
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from e

    verbose = bool((ctx.obj or {}).get("verbose", False))
    setup_loguru_logger(settings, verbose=verbose)
    log_startup_info(settings)
    return settings


@app.command(rich_help_panel="🔐 Account")
@command_error_handler
def login(ctx: typer.Context) -> None:
    """Authorize tunetransfer to read your Spotify library."""
    settings = _settings(ctx)

    async def run() -> dict:
        session = await SpotifySessionProvider(settings).login()
        return await SpotifyConnector.from_session(session, settings).get_profile()

    profile = asyncio.run(run())
    name = profile.get("display_name") or profile.get("id")
    console.print(f"[bold green]✓ Logged in to Spotify as {name}[/bold green]")


@app.command(rich_help_panel="🔐 Account")
@command_error_handler
def logout(ctx: typer.Context) -> None:
    """Forget the cached Spotify session."""
    settings = _settings(ctx)
    if SpotifySessionProvider(settings).logout():
        console.print("[green]✓ Spotify session removed[/green]")
    else:
        console.print("[dim]No Spotify session cached[/dim]")


@app.command(rich_help_panel="📊 Data Sync")
@command_error_handler
def sync(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Re-fetch playlists that are already stored"),
    ] = False,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the result payload as JSON"),
    ] = False,
) -> None:
    """Mirror your Spotify playlists and tracks into the local database."""
    settings = _settings(ctx)

    async def run() -> dict:
        try:
            session = await SpotifySessionProvider(settings).current_session()
        except SyncError as e:
            return {"error": e.to_payload()}
        return await sync_library(settings, session, force_refresh=force)

    with console.status("[bold blue]Syncing library...[/bold blue]", spinner="dots"):
        payload = asyncio.run(run())

    display_sync_result(payload, output_format="json" if as_json else "table")
    if "error" in payload:
        raise typer.Exit(code=EXIT_SYNC_FAILED)


@app.command(name="init-db", rich_help_panel="⚙️ System")
@command_error_handler
def init_db_command(ctx: typer.Context) -> None:
    """Create the database schema."""
    settings = _settings(ctx)

    async def run() -> None:
        engine = create_db_engine(settings)
        try:
            await init_db(engine)
        finally:
            await engine.dispose()

    asyncio.run(run())
    console.print("[green]✓ Database ready[/green]")


@app.command(name="version", rich_help_panel="⚙️ System")
def version_command() -> None:
    """Show version information."""
    console.print(
        f"[bold bright_blue]🎵 tunetransfer[/bold bright_blue] [dim]v{__version__}[/dim]"
    )


@app.callback()
def init_cli(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
) -> None:
    """Initialize tunetransfer CLI."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def main() -> int:
    """Application entry point."""
    try:
        return app() or 0
    except Exception:
        logger.exception("Unhandled exception")
        return 1
