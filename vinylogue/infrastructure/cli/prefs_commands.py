"""Preference commands for the Vinylogue CLI."""

from typing import Annotated

import typer

from vinylogue.infrastructure.cli.context import build_app_context
from vinylogue.infrastructure.cli.ui import command_error_handler, console

# Create prefs subcommand app
app = typer.Typer(help="View and change saved preferences")


@app.command(name="show")
@command_error_handler
def show_preferences() -> None:
    """Show the current user and play count filter."""
    prefs = build_app_context().preferences.current
    console.print(f"Current user: [cyan]{prefs.current_user_name or '(not set)'}[/cyan]")
    console.print(f"Minimum plays: [green]{prefs.min_play_count}[/green]")


@app.command(name="set-user")
@command_error_handler
def set_user(
    user_name: Annotated[str, typer.Argument(help="Your Last.fm user name")],
) -> None:
    """Save the Last.fm user charts default to."""
    build_app_context().preferences.set_current_user(user_name)
    console.print(f"[green]✓[/green] Current user is now [cyan]{user_name}[/cyan]")


@app.command(name="set-min-plays")
@command_error_handler
def set_min_plays(
    min_plays: Annotated[int, typer.Argument(min=0, help="Hide albums with fewer plays")],
) -> None:
    """Save the default minimum play count filter."""
    build_app_context().preferences.set_min_play_count(min_plays)
    console.print(f"[green]✓[/green] Minimum plays is now [green]{min_plays}[/green]")
