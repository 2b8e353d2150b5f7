"""Weekly chart and album commands for the Vinylogue CLI."""

from typing import Annotated

import typer

from vinylogue.application.services.precache import PrecacheCoordinator
from vinylogue.application.use_cases import (
    ChartSuccess,
    GetWeeklyChartCommand,
    LoadAlbumDetailCommand,
)
from vinylogue.config import get_config, get_logger
from vinylogue.domain.charts import available_year_range, can_navigate
from vinylogue.domain.entities import Album, Artist
from vinylogue.infrastructure.cli.async_helpers import async_command
from vinylogue.infrastructure.cli.context import build_app_context
from vinylogue.infrastructure.cli.ui import (
    console,
    display_album_detail,
    display_chart_result,
)

logger = get_logger(__name__)


def register_chart_commands(app: typer.Typer) -> None:
    """Register chart and album commands with the Typer app."""
    app.command(
        name="chart",
        help="Show a weekly album chart from years past",
        rich_help_panel="📀 Charts",
    )(chart)
    app.command(
        name="album",
        help="Show album details from Last.fm",
        rich_help_panel="📀 Charts",
    )(album)


def chart(
    user_name: Annotated[
        str | None,
        typer.Argument(help="Last.fm user (defaults to the saved current user)"),
    ] = None,
    years_back: Annotated[
        int,
        typer.Option("--years-back", "-y", min=0, help="How many years back"),
    ] = 1,
    min_plays: Annotated[
        int | None,
        typer.Option("--min-plays", "-m", min=0, help="Hide albums with fewer plays"),
    ] = None,
    precache: Annotated[
        bool,
        typer.Option("--precache/--no-precache", help="Warm neighbouring years"),
    ] = False,
) -> None:
    """Show the weekly album chart for this week, N years ago."""
    exit_code = _run_chart(user_name, years_back, min_plays, precache)
    if exit_code:
        raise typer.Exit(code=exit_code)


def album(
    artist: Annotated[str, typer.Argument(help="Artist name")],
    title: Annotated[str, typer.Argument(help="Album title")],
    user_name: Annotated[
        str | None,
        typer.Option("--user", "-u", help="Include this user's play count"),
    ] = None,
) -> None:
    """Show album description, release date and play counts."""
    _run_album(artist, title, user_name)


@async_command
async def _run_chart(
    user_name: str | None,
    years_back: int,
    min_plays: int | None,
    precache: bool,
) -> int:
    context = build_app_context()
    resolved = context.resolve_user_name(user_name)
    if not resolved:
        console.print(
            "[red]No user given.[/red] Pass a user name or run "
            "[cyan]vinylogue prefs set-user NAME[/cyan]"
        )
        return 2

    min_play_count = (
        min_plays if min_plays is not None else context.preferences.current.min_play_count
    )
    command = GetWeeklyChartCommand(
        user_name=resolved,
        years_back=years_back,
        min_play_count=min_play_count,
    )

    with console.status(f"Loading chart for {resolved}..."):
        result = await context.charts.execute(command)

    exit_code = _show_chart(context, result, resolved, years_back)

    if precache and isinstance(result, ChartSuccess) and get_config("PRECACHE_ADJACENT_YEARS", True):
        coordinator = PrecacheCoordinator(context.charts)
        tasks = coordinator.precache_adjacent(resolved, years_back, min_play_count)
        await coordinator.wait()
        console.print(f"[dim]Warmed {len(tasks)} neighbouring year(s)[/dim]")

    return exit_code


def _show_chart(context, result, user_name: str, years_back: int) -> int:
    exit_code = display_chart_result(result, user_name, years_back)

    cached_periods = context.cache.get_periods(user_name)
    if cached_periods is None or not isinstance(result, ChartSuccess):
        return exit_code

    periods = cached_periods.periods
    year_range = available_year_range(periods)
    if year_range:
        anchor = context.charts.clock()
        hints = []
        if can_navigate(periods, anchor, years_back + 1):
            hints.append(f"--years-back {years_back + 1}")
        if can_navigate(periods, anchor, years_back - 1):
            hints.append(f"--years-back {years_back - 1}")
        console.print(
            f"[dim]History {year_range[0]}–{year_range[1]}"
            + (f"; try {' or '.join(hints)}" if hints else "")
            + "[/dim]"
        )
    return exit_code


@async_command
async def _run_album(artist: str, title: str, user_name: str | None) -> None:
    context = build_app_context()
    command = LoadAlbumDetailCommand(
        album=Album(name=title, artist=Artist(name=artist)),
        user_name=context.resolve_user_name(user_name),
    )

    with console.status(f"Loading {artist} - {title}..."):
        result = await context.album_detail.execute(command)

    display_album_detail(result)
    if not result.succeeded:
        raise typer.Exit(code=1)
