"""Vinylogue CLI - Main application entry point and app structure."""

from typing import Annotated

from rich.console import Console
import typer

from vinylogue import __version__
from vinylogue.config import get_logger, log_startup_info, setup_loguru_logger
from vinylogue.infrastructure.cli import (
    favorites_commands,
    friends_commands,
    prefs_commands,
)
from vinylogue.infrastructure.cli.chart_commands import register_chart_commands

VERSION = __version__

console = Console(width=80)
logger = get_logger(__name__)

app = typer.Typer(
    help=f"📀 Vinylogue v{VERSION} - Your Last.fm weekly album charts from years past",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
)

register_chart_commands(app)

app.add_typer(
    favorites_commands.app,
    name="favorites",
    help="Manage the friends whose charts you follow",
    rich_help_panel="👥 Users",
)
app.add_typer(
    friends_commands.app,
    name="friends",
    help="Import friends from Last.fm",
    rich_help_panel="👥 Users",
)
app.add_typer(
    prefs_commands.app,
    name="prefs",
    help="View and change saved preferences",
    rich_help_panel="⚙️ System",
)


@app.command(name="version", rich_help_panel="⚙️ System")
def version_command() -> None:
    """Show version information."""
    console.print(
        f"[bold bright_blue]📀 Vinylogue[/bold bright_blue] [dim]v{VERSION}[/dim]"
    )


@app.callback()
def init_cli(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
) -> None:
    """Initialize Vinylogue CLI."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    setup_loguru_logger(verbose)
    log_startup_info()


def main() -> int:
    """Application entry point."""
    try:
        return app() or 0
    except Exception:
        logger.exception("Unhandled exception")
        return 1
