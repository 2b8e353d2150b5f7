"""In-process memoization of chart period lists and chart contents.

Chart contents are keyed by ``(user_name, period.from_, period.to)``. Every
stored value is an immutable snapshot that is replaced as a whole, so readers
never observe a partial update.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TypeAlias

from attrs import define, field

from vinylogue.config import get_logger
from vinylogue.domain.entities import ChartEntry, ChartPeriod, PartialFailure

logger = get_logger(__name__).bind(service="chart_cache")

ChartCacheKey: TypeAlias = tuple[str, datetime, datetime]


@define(frozen=True, slots=True)
class CachedChart:
    """Enriched chart entries for one (user, period) with their capture time."""

    entries: tuple[ChartEntry, ...]
    partial_failures: tuple[PartialFailure, ...]
    captured_at: datetime


@define(frozen=True, slots=True)
class CachedPeriodList:
    """A user's chart period list and whether its tail was already refreshed."""

    periods: tuple[ChartPeriod, ...]
    fetched_at: datetime
    refreshed: bool = False

    def is_stale(self, now: datetime) -> bool:
        """True once the latest-ending period has ended, until a single refresh happens."""
        if self.refreshed or not self.periods:
            return False
        return max(p.to for p in self.periods) < now


@define(slots=True)
class ChartCache:
    """Process-lifetime cache shared across all chart fetches.

    No eviction beyond ``invalidate``; one entry per user per requested period.
    """

    _charts: dict[ChartCacheKey, CachedChart] = field(factory=dict, init=False)
    _period_lists: dict[str, CachedPeriodList] = field(factory=dict, init=False)

    @staticmethod
    def key_for(user_name: str, period: ChartPeriod) -> ChartCacheKey:
        return (user_name, period.from_, period.to)

    # -------------------------------------------------------------------------
    # Chart contents
    # -------------------------------------------------------------------------

    def get(self, user_name: str, period: ChartPeriod) -> CachedChart | None:
        cached = self._charts.get(self.key_for(user_name, period))
        logger.debug(
            "Chart cache {}",
            "hit" if cached else "miss",
            user_name=user_name,
            period=period.key,
        )
        return cached

    def put(
        self,
        user_name: str,
        period: ChartPeriod,
        entries: Sequence[ChartEntry],
        partial_failures: Sequence[PartialFailure] = (),
        captured_at: datetime | None = None,
    ) -> CachedChart:
        """Store a chart snapshot, replacing any previous one for the key."""
        snapshot = CachedChart(
            entries=tuple(entries),
            partial_failures=tuple(partial_failures),
            captured_at=captured_at or datetime.now(UTC),
        )
        self._charts[self.key_for(user_name, period)] = snapshot
        return snapshot

    # -------------------------------------------------------------------------
    # Period lists
    # -------------------------------------------------------------------------

    def get_periods(self, user_name: str) -> CachedPeriodList | None:
        return self._period_lists.get(user_name)

    def put_periods(
        self,
        user_name: str,
        periods: Sequence[ChartPeriod],
        refreshed: bool = False,
        fetched_at: datetime | None = None,
    ) -> CachedPeriodList:
        snapshot = CachedPeriodList(
            periods=tuple(periods),
            fetched_at=fetched_at or datetime.now(UTC),
            refreshed=refreshed,
        )
        self._period_lists[user_name] = snapshot
        return snapshot

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def invalidate(self, user_name: str) -> int:
        """Drop every cached chart and the period list for ``user_name``.

        Returns:
            Number of chart entries removed
        """
        stale_keys = [key for key in self._charts if key[0] == user_name]
        for key in stale_keys:
            del self._charts[key]
        self._period_lists.pop(user_name, None)

        logger.debug("Invalidated cache", user_name=user_name, charts=len(stale_keys))
        return len(stale_keys)

    def __len__(self) -> int:
        return len(self._charts)
