"""UI helpers for CLI interaction.

Reusable rich renderers and the command error handler, keeping presentation
separate from the chart pipeline.
"""

from collections.abc import Callable, Sequence
import functools
from typing import ParamSpec, TypeVar

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
import typer

from vinylogue.application.use_cases import (
    AlbumDetailResult,
    ChartCancelled,
    ChartEmpty,
    ChartFailed,
    ChartResult,
    ChartSuccess,
    EmptyReason,
)
from vinylogue.config import get_logger
from vinylogue.domain.charts import week_info
from vinylogue.domain.entities import User
from vinylogue.domain.errors import ServiceErrorKind

# Initialize console and logger
console = Console()
logger = get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def command_error_handler(func: Callable[P, R]) -> Callable[P, R]:
    """Decorator to standardize error handling for CLI commands.

    Logs unexpected errors with loguru, prints a short message with rich, and
    converts the failure to a non-zero exit code.
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        operation = func.__name__.replace("_", " ").strip()

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
                raise typer.Exit(code=1) from e

    return wrapper


# =============================================================================
# CHARTS
# =============================================================================

_EMPTY_MESSAGES = {
    EmptyReason.NO_PERIODS_AVAILABLE: "has no weekly charts on Last.fm yet",
    EmptyReason.PERIOD_NOT_FOUND: "has no chart for that week",
}

_FAILURE_HINTS = {
    ServiceErrorKind.NOT_FOUND.value: "Check the user name",
    ServiceErrorKind.RATE_LIMITED.value: "Last.fm is rate limiting requests; try again shortly",
    "transport": "Check your network connection and try again",
}


def display_chart_result(result: ChartResult, user_name: str, years_back: int) -> int:
    """Render a chart result; returns the exit code the command should use."""
    match result:
        case ChartSuccess():
            display_chart(result, user_name, years_back)
            return 0
        case ChartEmpty(reason=reason):
            console.print(
                f"[yellow]{user_name} {_EMPTY_MESSAGES[reason]}[/yellow] "
                f"[dim]({years_back} year(s) back)[/dim]"
            )
            return 0
        case ChartFailed():
            hint = _FAILURE_HINTS.get(result.error_kind, "")
            console.print(
                f"[bold red]✗ Could not load chart[/bold red] "
                f"[dim]({result.stage.value}, {result.error_kind})[/dim]: {result.error}"
            )
            if hint:
                console.print(f"[dim]{hint}[/dim]")
            return 1
        case ChartCancelled():
            console.print("[dim]Chart request cancelled[/dim]")
            return 130
    return 1


def display_chart(result: ChartSuccess, user_name: str, years_back: int) -> None:
    info = week_info(result.period)
    title = f"{user_name} · {info.display_text}"
    if years_back:
        title += f" · {years_back} year{'s' if years_back != 1 else ''} ago"

    if not result.entries:
        console.print(f"[bold]{title}[/bold]\n[yellow]No albums above the play count filter[/yellow]")
        return

    table = Table(title=title, title_justify="left")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Artist", style="cyan")
    table.add_column("Album", style="bold")
    table.add_column("Plays", justify="right", style="green")
    table.add_column("Artwork", justify="center")

    for entry in result.entries:
        table.add_row(
            str(entry.rank),
            entry.album.artist.name,
            entry.album.name,
            str(entry.play_count),
            "✓" if entry.album.image_url else "[dim]–[/dim]",
        )

    console.print(table)

    if result.partial_failures:
        console.print(
            f"[yellow]{len(result.partial_failures)} artwork lookup(s) failed[/yellow] "
            f"[dim](ranks {', '.join(str(f.rank) for f in result.partial_failures)})[/dim]"
        )
    if result.from_cache:
        console.print("[dim]Served from cache[/dim]")


# =============================================================================
# ALBUMS & USERS
# =============================================================================


def display_album_detail(result: AlbumDetailResult) -> None:
    album = result.album
    lines = [f"[cyan]{album.artist.name}[/cyan]"]
    if album.release_date:
        lines.append(f"Released: {album.release_date:%d %b %Y}")
    if album.total_play_count is not None:
        lines.append(f"Total plays: {album.total_play_count:,}")
    if album.user_play_count is not None:
        lines.append(f"Your plays: {album.user_play_count:,}")
    if album.image_url:
        lines.append(f"[dim]{album.image_url}[/dim]")
    if album.about:
        lines.append("")
        lines.append(album.about)
    if result.error is not None:
        lines.append(f"\n[yellow]Details unavailable: {result.error}[/yellow]")

    console.print(Panel("\n".join(lines), title=f"[bold]{album.name}[/bold]", expand=False))


def display_users(users: Sequence[User], title: str) -> None:
    if not users:
        console.print(f"[dim]{title}: none[/dim]")
        return

    table = Table(title=title, title_justify="left")
    table.add_column("#", justify="right", style="dim")
    table.add_column("User", style="cyan")
    table.add_column("Name")

    for index, user in enumerate(users):
        table.add_row(str(index), user.user_name, user.real_name or "")

    console.print(table)
