"""Calendar helpers for presenting and navigating chart periods."""

from collections.abc import Sequence
from datetime import datetime

from attrs import define

from vinylogue.domain.entities import ChartPeriod, ensure_utc


@define(frozen=True, slots=True)
class WeekInfo:
    """ISO week number and week-based year of a chart period's start."""

    week_number: int
    year: int

    @property
    def display_text(self) -> str:
        return f"WEEK {self.week_number} of {self.year}"


def week_info(period: ChartPeriod) -> WeekInfo:
    iso = period.from_.isocalendar()
    return WeekInfo(week_number=iso.week, year=iso.year)


def available_year_range(periods: Sequence[ChartPeriod]) -> tuple[int, int] | None:
    """Years spanned by a user's chart history, from the first start to the last end."""
    if not periods:
        return None
    return (periods[0].from_.year, periods[-1].to.year)


def can_navigate(
    periods: Sequence[ChartPeriod],
    anchor_date: datetime,
    years_back: int,
) -> bool:
    """Whether a chart ``years_back`` years before ``anchor_date`` may exist.

    The current year (offset 0) is never a navigation target.
    """
    if years_back <= 0:
        return False

    year_range = available_year_range(periods)
    if year_range is None:
        return False

    target_year = ensure_utc(anchor_date).year - years_back  # type: ignore[union-attr]
    first_year, last_year = year_range
    return first_year <= target_year <= last_year
