"""Friends import commands for the Vinylogue CLI."""

from typing import Annotated

import typer

from vinylogue.application.use_cases import ImportFriendsCommand
from vinylogue.infrastructure.cli.async_helpers import async_command
from vinylogue.infrastructure.cli.context import build_app_context
from vinylogue.infrastructure.cli.ui import console, display_users

# Create friends subcommand app
app = typer.Typer(help="Import friends from Last.fm")


@app.command(name="import")
def import_friends(
    user_name: Annotated[
        str | None,
        typer.Argument(help="Whose friends to import (defaults to the current user)"),
    ] = None,
    apply: Annotated[
        bool,
        typer.Option("--apply", help="Add the new friends to favorites"),
    ] = False,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-l", min=1, help="Maximum friends to fetch"),
    ] = None,
) -> None:
    """Show (and optionally add) Last.fm friends not yet in favorites."""
    _run_import(user_name, apply, limit)


@async_command
async def _run_import(user_name: str | None, apply: bool, limit: int | None) -> None:
    context = build_app_context()
    resolved = context.resolve_user_name(user_name)
    if not resolved:
        console.print("[red]No user given.[/red] Pass a user name or set a current user")
        raise typer.Exit(code=2)

    with console.status(f"Fetching friends of {resolved}..."):
        result = await context.friends.execute(
            ImportFriendsCommand(user_name=resolved, apply=apply, limit=limit)
        )

    display_users(result.new_friends, f"New friends of {resolved}")
    if apply:
        console.print(f"[green]✓[/green] Added {result.added} favorite(s)")
    elif result.new_friends:
        console.print("[dim]Run again with --apply to add them[/dim]")
