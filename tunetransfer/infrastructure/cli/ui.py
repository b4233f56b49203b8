"""Rich rendering helpers and error handling shared by CLI commands."""

from collections.abc import Callable
import functools
import json
from typing import Any, ParamSpec, TypeVar

from rich.console import Console
from rich.table import Table
import typer

from tunetransfer.config import get_logger

console = Console()
logger = get_logger(__name__)

# Exit codes
EXIT_SYNC_FAILED = 1
EXIT_CONFIG_ERROR = 2


P = ParamSpec("P")
R = TypeVar("R")


def command_error_handler(func: Callable[P, R]) -> Callable[P, R]:
    """Decorator to standardize error handling for CLI commands.

    Unexpected exceptions are logged with their traceback, shown to the user
    as a one-line message, and turned into exit code 1.
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        operation = func.__name__.replace("_", " ")

        with logger.contextualize(operation=operation):
            try:
                logger.debug(f"Executing {operation}")
                return func(*args, **kwargs)

            except typer.Exit:
                raise

            except typer.Abort:
                logger.info(f"Operation {operation} aborted by user")
                raise

            except Exception as e:
                logger.exception(f"Error during {operation}")
                console.print(f"\n[bold red]✗ Error during {operation}:[/bold red] {e}")
                raise typer.Exit(code=EXIT_SYNC_FAILED) from e

    return wrapper


def display_error_payload(error: dict[str, Any]) -> None:
    """Show a structured failure as ``kind: message``."""
    console.print(
        f"\n[bold red]✗ {error.get('kind', 'error')}:[/bold red] {error.get('message', '')}"
    )
    if error.get("kind") == "authentication_required":
        console.print("[yellow]Run 'tunetransfer login' to authorize Spotify access.[/yellow]")


def display_sync_result(payload: dict[str, Any], output_format: str = "table") -> None:
    """Render the outcome of a sync pass.

    Args:
        payload: Result of ``sync_library``
        output_format: "table" or "json"
    """
    if output_format == "json":
        console.print_json(json.dumps(payload, default=str))
        return

    if "error" in payload:
        display_error_payload(payload["error"])
        return

    user = payload["user"]
    profile = user.get("profile") or {}
    stats = payload.get("stats", {})
    name = profile.get("display_name") or user["provider_user_id"]
    console.print(f"\n[bold blue]Library of {name}[/bold blue]")

    summary_table = Table(show_header=False, box=None, padding=(0, 2))
    summary_table.add_column(style="cyan")
    summary_table.add_column(style="green bold")
    for key in (
        "playlists_seen",
        "playlists_filtered",
        "playlists_skipped",
        "playlists_fetched",
        "tracks_upserted",
        "track_entries_dropped",
    ):
        summary_table.add_row(key.replace("_", " ").capitalize(), str(stats.get(key, 0)))
    if stats.get("execution_time"):
        summary_table.add_row("Duration", f"{stats['execution_time']:.1f}s")
    console.print(summary_table)

    playlists = payload.get("playlists", [])
    if playlists:
        console.print()
        details_table = Table(title="Playlists")
        details_table.add_column("#", style="dim", justify="right")
        details_table.add_column("Name", style="green")
        details_table.add_column("Owner", style="cyan")
        details_table.add_column("Tracks", justify="right")

        for i, playlist in enumerate(playlists, 1):
            playlist_payload = playlist.get("payload") or {}
            owner = (playlist_payload.get("owner") or {}).get("display_name") or "—"
            details_table.add_row(
                str(i),
                playlist_payload.get("name") or playlist["provider_playlist_id"],
                owner,
                str(len(playlist.get("tracks", []))),
            )

        console.print(details_table)

    console.print()
