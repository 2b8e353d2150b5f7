"""Favorite users commands for the Vinylogue CLI."""

from typing import Annotated

import typer

from vinylogue.domain.entities import User
from vinylogue.domain.errors import DuplicateUserError, ServiceError, ServiceErrorKind
from vinylogue.infrastructure.cli.async_helpers import async_command
from vinylogue.infrastructure.cli.context import build_app_context
from vinylogue.infrastructure.cli.ui import command_error_handler, console, display_users

# Create favorites subcommand app
app = typer.Typer(help="Manage the friends whose charts you follow")


@app.command(name="list")
@command_error_handler
def list_favorites() -> None:
    """List favorites in their saved order."""
    context = build_app_context()
    display_users(context.favorites.users(), "Favorites")


@app.command(name="add")
def add_favorite(
    user_name: Annotated[str, typer.Argument(help="Last.fm user to follow")],
    verify: Annotated[
        bool,
        typer.Option("--verify/--no-verify", help="Look the user up on Last.fm first"),
    ] = True,
) -> None:
    """Add a user to the end of the favorites list."""
    _run_add(user_name, verify)


@async_command
async def _run_add(user_name: str, verify: bool) -> None:
    context = build_app_context()

    user = User(user_name=user_name)
    if verify:
        try:
            user = await context.connector.fetch_user(user_name)
        except ServiceError as e:
            if e.kind is ServiceErrorKind.NOT_FOUND:
                console.print(f"[red]Last.fm user '{user_name}' not found[/red]")
                raise typer.Exit(code=1) from e
            raise

    try:
        context.favorites.add(user)
    except DuplicateUserError as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(code=1) from e

    console.print(f"[green]✓[/green] Added [cyan]{user.user_name}[/cyan]")


@app.command(name="remove")
@command_error_handler
def remove_favorite(
    index: Annotated[int, typer.Argument(min=0, help="Position shown by 'favorites list'")],
) -> None:
    """Remove the favorite at a position."""
    context = build_app_context()
    removed = context.favorites.remove_at(index)
    console.print(f"[green]✓[/green] Removed [cyan]{removed.user_name}[/cyan]")


@app.command(name="move")
@command_error_handler
def move_favorite(
    from_index: Annotated[int, typer.Argument(min=0, help="Current position")],
    to_index: Annotated[int, typer.Argument(min=0, help="New position")],
) -> None:
    """Move a favorite to a new position."""
    context = build_app_context()
    context.favorites.move_at(from_index, to_index)
    display_users(context.favorites.users(), "Favorites")
