"""Weekly chart use case: "this week, N years ago" for a Last.fm user.

Pipeline stages, in order:
1. Load the user's chart period list (cached per process, refreshed once
   when its newest period has ended)
2. Select the target period
3. Fetch that period's ranked album chart (cached per user and period)
4. Resolve missing album artwork with bounded concurrency; individual
   failures are recorded, never fatal
5. Filter by minimum play count, preserving rank order

Concurrent requests for the same user and period share one in-flight fetch.
Each invocation may carry its own CancellationToken; cancelling it only
affects that invocation.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Generic, TypeAlias, TypeVar

from attrs import define, field, validators

from vinylogue.application.services.chart_cache import (
    CachedChart,
    ChartCache,
    ChartCacheKey,
)
from vinylogue.application.utilities import (
    BoundedFanOut,
    CancellationToken,
    OperationCancelled,
)
from vinylogue.config import get_config, get_logger
from vinylogue.domain.charts import select_period
from vinylogue.domain.entities import (
    ChartEntry,
    ChartPeriod,
    FetchStage,
    PartialFailure,
)
from vinylogue.domain.errors import ServiceError, TransportError, VinylogueError
from vinylogue.domain.repositories import ChartGatewayProtocol
from vinylogue.domain.transforms import apply_chart_filters

logger = get_logger(__name__).bind(service="charts")

# Upper bound on concurrent artwork lookups regardless of configuration
MAX_IMAGE_LOOKUP_CONCURRENCY = 6


def _default_image_concurrency() -> int:
    configured = get_config("IMAGE_LOOKUP_CONCURRENCY", MAX_IMAGE_LOOKUP_CONCURRENCY)
    return max(1, min(int(configured), MAX_IMAGE_LOOKUP_CONCURRENCY))


def _utc_now() -> datetime:
    return datetime.now(UTC)


# =============================================================================
# COMMAND & RESULTS
# =============================================================================


@define(frozen=True, slots=True)
class GetWeeklyChartCommand:
    """Request for one user's chart ``years_back`` years before ``anchor_date``.

    ``anchor_date`` defaults to the current time when omitted.
    """

    user_name: str = field(validator=validators.min_len(1))
    years_back: int = field(validator=[validators.instance_of(int), validators.ge(0)])
    min_play_count: int = field(
        default=1, validator=[validators.instance_of(int), validators.ge(0)]
    )
    anchor_date: datetime | None = field(default=None)


class EmptyReason(Enum):
    NO_PERIODS_AVAILABLE = "no_periods_available"
    PERIOD_NOT_FOUND = "period_not_found"


@define(frozen=True, slots=True)
class ChartSuccess:
    """Ranked, enriched, filtered entries plus any non-fatal enrichment failures."""

    entries: tuple[ChartEntry, ...]
    partial_failures: tuple[PartialFailure, ...]
    period: ChartPeriod
    from_cache: bool = False


@define(frozen=True, slots=True)
class ChartEmpty:
    reason: EmptyReason


@define(frozen=True, slots=True)
class ChartFailed:
    """A fatal failure with the stage it happened in."""

    error: VinylogueError = field(eq=False)
    stage: FetchStage

    @property
    def error_kind(self) -> str:
        if isinstance(self.error, ServiceError):
            return self.error.kind.value
        if isinstance(self.error, TransportError):
            return "transport"
        return "unknown"


@define(frozen=True, slots=True)
class ChartCancelled:
    """The caller cancelled before a result was ready. Not a failure."""


ChartResult: TypeAlias = ChartSuccess | ChartEmpty | ChartFailed | ChartCancelled


# =============================================================================
# IN-FLIGHT SHARING
# =============================================================================


K = TypeVar("K")
R = TypeVar("R")


@define(slots=True)
class _SharedFetch(Generic[R]):
    """One in-flight fetch awaited by any number of joiners.

    When the last joiner stops waiting before completion, the fetch's own
    token is cancelled and its task is cancelled.
    """

    task: asyncio.Task[R]
    token: CancellationToken
    waiters: int = 0

    async def join(self, token: CancellationToken) -> R:
        self.waiters += 1
        try:
            token.raise_if_cancelled()
            waiter = asyncio.create_task(token.wait())
            try:
                done, _ = await asyncio.wait(
                    {self.task, waiter}, return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                waiter.cancel()

            if self.task in done:
                return self.task.result()
            raise OperationCancelled
        finally:
            self.waiters -= 1
            if self.waiters == 0 and not self.task.done():
                self.token.cancel()
                self.task.cancel()


def _start_shared(
    registry: dict[K, "_SharedFetch[R]"],
    key: K,
    factory: Callable[[CancellationToken], Awaitable[R]],
) -> "_SharedFetch[R]":
    """Return the in-flight fetch for ``key``, starting one if needed."""
    existing = registry.get(key)
    if (
        existing is not None
        and not existing.task.done()
        and not existing.token.is_cancelled
    ):
        logger.debug("Joining in-flight fetch", key=key)
        return existing

    fetch_token = CancellationToken()
    task = asyncio.create_task(factory(fetch_token))
    shared = _SharedFetch(task=task, token=fetch_token)
    registry[key] = shared

    def _release(finished: asyncio.Task) -> None:
        if registry.get(key) is shared:
            del registry[key]
        # Abandoned fetches may finish with an error nobody awaits
        if not finished.cancelled():
            finished.exception()

    task.add_done_callback(_release)
    return shared


# =============================================================================
# USE CASE
# =============================================================================


@define(slots=True)
class GetWeeklyChartUseCase:
    """Fetch, enrich, filter and cache a user's weekly album chart.

    Args:
        gateway: Remote chart service
        cache: Shared result cache; pass the same instance to every use case
            in a process
        image_concurrency: Maximum concurrent artwork lookups (capped at 6)
        clock: Source of "now" for period staleness and default anchors
    """

    gateway: ChartGatewayProtocol
    cache: ChartCache = field(factory=ChartCache)
    image_concurrency: int = field(
        factory=_default_image_concurrency,
        converter=lambda n: max(1, min(int(n), MAX_IMAGE_LOOKUP_CONCURRENCY)),
    )
    clock: Callable[[], datetime] = field(default=_utc_now)
    _chart_fetches: dict[ChartCacheKey, _SharedFetch[CachedChart]] = field(
        factory=dict, init=False
    )
    _period_fetches: dict[str, _SharedFetch[tuple[ChartPeriod, ...]]] = field(
        factory=dict, init=False
    )

    async def execute(
        self,
        command: GetWeeklyChartCommand,
        token: CancellationToken | None = None,
    ) -> ChartResult:
        """Resolve, fetch, enrich and filter one weekly chart.

        Args:
            command: Which user, how many years back, and the play count filter
            token: Cancels this invocation only

        Returns:
            ChartSuccess, ChartEmpty, ChartFailed or ChartCancelled
        """
        token = token or CancellationToken()
        anchor = command.anchor_date or self.clock()

        with logger.contextualize(
            operation="get_weekly_chart",
            user_name=command.user_name,
            years_back=command.years_back,
        ):
            try:
                periods = await self._load_periods(command.user_name, token)
            except OperationCancelled:
                logger.debug("Cancelled while loading periods")
                return ChartCancelled()
            except VinylogueError as e:
                logger.warning(f"Period list failed: {e}")
                return ChartFailed(error=e, stage=FetchStage.PERIOD_LIST)

            if not periods:
                return ChartEmpty(reason=EmptyReason.NO_PERIODS_AVAILABLE)

            period = select_period(periods, anchor, command.years_back)
            if period is None:
                logger.info("No chart period for requested year")
                return ChartEmpty(reason=EmptyReason.PERIOD_NOT_FOUND)

            from_cache = True
            chart = self.cache.get(command.user_name, period)
            if chart is None:
                from_cache = False
                try:
                    chart = await self._load_chart(command.user_name, period, token)
                except OperationCancelled:
                    logger.debug("Cancelled while loading chart")
                    return ChartCancelled()
                except VinylogueError as e:
                    logger.warning(f"Chart fetch failed: {e}")
                    return ChartFailed(error=e, stage=FetchStage.CHART)

            if token.is_cancelled:
                return ChartCancelled()

            entries = apply_chart_filters(chart.entries, command.min_play_count)
            surviving_ranks = {entry.rank for entry in entries}
            failures = tuple(
                failure
                for failure in chart.partial_failures
                if failure.rank in surviving_ranks
            )

            logger.info(
                "Chart ready",
                entries=len(entries),
                filtered_out=len(chart.entries) - len(entries),
                partial_failures=len(failures),
                from_cache=from_cache,
            )
            return ChartSuccess(
                entries=entries,
                partial_failures=failures,
                period=period,
                from_cache=from_cache,
            )

    # -------------------------------------------------------------------------
    # Period list
    # -------------------------------------------------------------------------

    async def _load_periods(
        self, user_name: str, token: CancellationToken
    ) -> tuple[ChartPeriod, ...]:
        cached = self.cache.get_periods(user_name)
        if cached is not None and not cached.is_stale(self.clock()):
            return cached.periods

        token.raise_if_cancelled()

        async def fetch(fetch_token: CancellationToken) -> tuple[ChartPeriod, ...]:
            fetch_token.raise_if_cancelled()
            try:
                periods = await self.gateway.fetch_period_list(user_name)
            except VinylogueError:
                if cached is None:
                    raise
                logger.warning("Period list refresh failed, keeping cached list")
                self.cache.put_periods(user_name, cached.periods, refreshed=True)
                return cached.periods

            stored = self.cache.put_periods(
                user_name, periods, refreshed=cached is not None
            )
            logger.debug(
                "Loaded chart periods",
                count=len(stored.periods),
                refreshed=cached is not None,
            )
            return stored.periods

        shared = _start_shared(self._period_fetches, user_name, fetch)
        return await shared.join(token)

    # -------------------------------------------------------------------------
    # Chart contents
    # -------------------------------------------------------------------------

    async def _load_chart(
        self, user_name: str, period: ChartPeriod, token: CancellationToken
    ) -> CachedChart:
        token.raise_if_cancelled()
        key = ChartCache.key_for(user_name, period)

        async def fetch(fetch_token: CancellationToken) -> CachedChart:
            return await self._fetch_and_enrich(user_name, period, fetch_token)

        shared = _start_shared(self._chart_fetches, key, fetch)
        return await shared.join(token)

    async def _fetch_and_enrich(
        self, user_name: str, period: ChartPeriod, token: CancellationToken
    ) -> CachedChart:
        token.raise_if_cancelled()
        entries = list(await self.gateway.fetch_chart(user_name, period))

        token.raise_if_cancelled()
        entries, failures = await self._enrich_images(entries, token)

        token.raise_if_cancelled()
        return self.cache.put(user_name, period, entries, failures)

    async def _enrich_images(
        self, entries: list[ChartEntry], token: CancellationToken
    ) -> tuple[list[ChartEntry], list[PartialFailure]]:
        """Fill in missing artwork; failed lookups leave the image empty."""
        missing = [i for i, entry in enumerate(entries) if not entry.album.image_url]
        if not missing:
            return entries, []

        fan_out = BoundedFanOut[int, str | None](
            concurrency_limit=self.image_concurrency,
            logger_instance=logger,
        )

        async def lookup(index: int) -> str | None:
            album = entries[index].album
            return await self.gateway.resolve_album_image(album.artist.name, album.name)

        results = await fan_out.process(missing, lookup, token)

        enriched = list(entries)
        failures: list[PartialFailure] = []
        for index, result in zip(missing, results, strict=True):
            entry = enriched[index]
            if isinstance(result, Exception):
                logger.debug(
                    "Artwork lookup failed",
                    rank=entry.rank,
                    album=entry.album.name,
                    error=str(result),
                )
                failures.append(
                    PartialFailure(
                        rank=entry.rank, stage=FetchStage.IMAGE_LOOKUP, error=result
                    )
                )
            elif result:
                enriched[index] = entry.with_album(entry.album.with_image(result))

        return enriched, failures
