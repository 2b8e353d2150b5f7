"""Resolve "this week, N years ago" against a user's chart period list."""

from collections.abc import Sequence
from datetime import datetime, timedelta

from vinylogue.domain.entities import ChartPeriod, ensure_utc

DAYS_PER_YEAR = 365.25


def target_instant(anchor_date: datetime, years_back: int) -> datetime:
    """Shift ``anchor_date`` back by ``years_back`` average-length years."""
    anchor = ensure_utc(anchor_date)
    return anchor - timedelta(days=years_back * DAYS_PER_YEAR)  # type: ignore[operator]


def select_period(
    periods: Sequence[ChartPeriod],
    anchor_date: datetime,
    years_back: int,
) -> ChartPeriod | None:
    """Pick the chart period for ``anchor_date`` shifted back ``years_back`` years.

    Selection order:
    1. the period whose [from_, to) window contains the target instant
    2. otherwise the period with the latest ``from_`` not after the target

    Returns None (not available) when ``periods`` is empty or the target
    predates the earliest period. The returned period is always one of the
    inputs.
    """
    if not periods:
        return None

    target = target_instant(anchor_date, years_back)

    earliest = min(periods, key=lambda p: p.from_)
    if target < earliest.from_:
        return None

    for period in periods:
        if period.contains(target):
            return period

    candidates = [p for p in periods if p.from_ <= target]
    # Ties on from_ resolve to the first in input order
    return max(candidates, key=lambda p: p.from_)
