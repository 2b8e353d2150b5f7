"""Tests for the weekly chart pipeline."""

import asyncio
from datetime import UTC, datetime

import pytest

from tests.fixtures.models import USER, FakeChartGateway, make_entries, make_weekly_periods
from vinylogue.application.services import ChartCache
from vinylogue.application.use_cases import (
    ChartCancelled,
    ChartEmpty,
    ChartFailed,
    ChartSuccess,
    EmptyReason,
    GetWeeklyChartCommand,
    GetWeeklyChartUseCase,
)
from vinylogue.application.utilities import CancellationToken
from vinylogue.domain.charts import target_instant
from vinylogue.domain.entities import FetchStage
from vinylogue.domain.errors import (
    ServiceError,
    ServiceErrorKind,
    TransportError,
)


@pytest.fixture
def use_case(gateway, anchor):
    return GetWeeklyChartUseCase(gateway=gateway, cache=ChartCache(), clock=lambda: anchor)


def command(years_back: int = 1, min_play_count: int = 1) -> GetWeeklyChartCommand:
    return GetWeeklyChartCommand(
        user_name=USER, years_back=years_back, min_play_count=min_play_count
    )


async def until(predicate, limit: int = 1000) -> None:
    """Yield to the event loop until ``predicate`` holds."""
    for _ in range(limit):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


class TestSuccess:
    async def test_returns_ranked_enriched_entries(self, use_case, anchor):
        result = await use_case.execute(command(years_back=1))

        assert isinstance(result, ChartSuccess)
        assert [e.rank for e in result.entries] == list(range(1, 11))
        assert result.entries[0].album.image_url == "https://img.example/Album 1.jpg"
        assert result.partial_failures == ()
        assert not result.from_cache
        assert result.period.from_.year == anchor.year - 1

    async def test_selected_period_contains_target(self, use_case, anchor):
        result = await use_case.execute(command(years_back=2))

        assert result.period.contains(target_instant(anchor, 2))

    async def test_explicit_anchor_overrides_clock(self, use_case):
        anchored = GetWeeklyChartCommand(
            user_name=USER,
            years_back=0,
            anchor_date=datetime(2020, 7, 1, tzinfo=UTC),
        )

        result = await use_case.execute(anchored)

        assert result.period.contains(datetime(2020, 7, 1, tzinfo=UTC))

    async def test_existing_artwork_is_not_looked_up(self, gateway, periods, anchor):
        gateway.charts = {p.key: make_entries(USER, p, 4, with_images=True) for p in periods}
        use_case = GetWeeklyChartUseCase(gateway=gateway, clock=lambda: anchor)

        result = await use_case.execute(command())

        assert isinstance(result, ChartSuccess)
        assert gateway.calls["resolve_album_image"] == 0
        assert result.entries[0].album.image_url == "https://img.example/1.jpg"

    async def test_missing_artwork_stays_empty(self, use_case, gateway):
        gateway.images["Album 3"] = None

        result = await use_case.execute(command())

        assert result.entries[2].album.image_url is None
        assert result.partial_failures == ()


class TestPartialFailures:
    async def test_image_failures_do_not_fail_the_chart(self, use_case, gateway):
        gateway.image_errors["Album 4"] = TransportError("timed out")
        gateway.image_errors["Album 9"] = ServiceError(ServiceErrorKind.OTHER, "bad gateway")

        result = await use_case.execute(command())

        assert isinstance(result, ChartSuccess)
        assert len(result.entries) == 10
        assert [e.rank for e in result.entries] == list(range(1, 11))
        assert [f.rank for f in result.partial_failures] == [4, 9]
        assert {f.stage for f in result.partial_failures} == {FetchStage.IMAGE_LOOKUP}
        assert result.entries[3].album.image_url is None
        assert result.entries[4].album.image_url is not None

    async def test_failures_for_filtered_entries_are_dropped(self, use_case, gateway):
        # play counts run 11 down to 2 for ranks 1..10
        gateway.image_errors["Album 2"] = TransportError("reset")
        gateway.image_errors["Album 10"] = TransportError("reset")

        result = await use_case.execute(command(min_play_count=5))

        assert [e.rank for e in result.entries] == [1, 2, 3, 4, 5, 6, 7]
        assert [f.rank for f in result.partial_failures] == [2]


class TestFiltering:
    async def test_min_play_count_keeps_rank_order(self, gateway, periods, anchor):
        gateway.charts = {
            p.key: make_entries(USER, p, 5, play_counts=[8, 1, 6, 2, 3]) for p in periods
        }
        use_case = GetWeeklyChartUseCase(gateway=gateway, clock=lambda: anchor)

        result = await use_case.execute(command(min_play_count=3))

        assert [e.rank for e in result.entries] == [1, 3, 5]
        assert all(e.play_count >= 3 for e in result.entries)

    async def test_filter_applies_to_cached_chart(self, use_case, gateway):
        unfiltered = await use_case.execute(command(min_play_count=1))
        filtered = await use_case.execute(command(min_play_count=9))

        assert len(unfiltered.entries) == 10
        assert [e.play_count for e in filtered.entries] == [11, 10, 9]
        assert filtered.from_cache
        assert gateway.calls["fetch_chart"] == 1


class TestEmpty:
    async def test_user_without_history(self, anchor):
        gateway = FakeChartGateway(periods=[])
        use_case = GetWeeklyChartUseCase(gateway=gateway, clock=lambda: anchor)

        result = await use_case.execute(command())

        assert result == ChartEmpty(reason=EmptyReason.NO_PERIODS_AVAILABLE)
        assert gateway.calls["fetch_chart"] == 0

    async def test_year_before_history(self, use_case, gateway):
        result = await use_case.execute(command(years_back=20))

        assert result == ChartEmpty(reason=EmptyReason.PERIOD_NOT_FOUND)
        assert gateway.calls["fetch_chart"] == 0

    async def test_empty_chart_is_success(self, gateway, anchor):
        gateway.charts = {}
        use_case = GetWeeklyChartUseCase(gateway=gateway, clock=lambda: anchor)

        result = await use_case.execute(command())

        assert isinstance(result, ChartSuccess)
        assert result.entries == ()


class TestFatalFailures:
    async def test_period_list_failure(self, use_case, gateway):
        gateway.period_list_error = ServiceError(ServiceErrorKind.NOT_FOUND, "User not found", 6)

        result = await use_case.execute(command())

        assert isinstance(result, ChartFailed)
        assert result.stage is FetchStage.PERIOD_LIST
        assert result.error_kind == "not_found"

    async def test_chart_failure(self, use_case, gateway):
        gateway.chart_error = TransportError("connection refused")

        result = await use_case.execute(command())

        assert isinstance(result, ChartFailed)
        assert result.stage is FetchStage.CHART
        assert result.error_kind == "transport"
        assert gateway.calls["resolve_album_image"] == 0

    async def test_failed_chart_is_not_cached(self, use_case, gateway):
        gateway.chart_error = ServiceError(ServiceErrorKind.RATE_LIMITED, "slow down", 29)
        await use_case.execute(command())

        gateway.chart_error = None
        result = await use_case.execute(command())

        assert isinstance(result, ChartSuccess)
        assert gateway.calls["fetch_chart"] == 2


class TestCaching:
    async def test_second_request_served_from_cache(self, use_case, gateway):
        first = await use_case.execute(command())
        second = await use_case.execute(command())

        assert second.from_cache
        assert second.entries == first.entries
        assert gateway.calls["fetch_chart"] == 1
        assert gateway.calls["resolve_album_image"] == 10
        assert gateway.calls["fetch_period_list"] == 1

    async def test_cache_shared_between_use_cases(self, gateway, anchor):
        cache = ChartCache()
        first = GetWeeklyChartUseCase(gateway=gateway, cache=cache, clock=lambda: anchor)
        second = GetWeeklyChartUseCase(gateway=gateway, cache=cache, clock=lambda: anchor)

        await first.execute(command())
        result = await second.execute(command())

        assert result.from_cache
        assert gateway.calls["fetch_chart"] == 1

    async def test_invalidate_forces_refetch(self, use_case, gateway):
        await use_case.execute(command())

        use_case.cache.invalidate(USER)
        result = await use_case.execute(command())

        assert not result.from_cache
        assert gateway.calls["fetch_chart"] == 2
        assert gateway.calls["fetch_period_list"] == 2

    async def test_ended_period_list_refreshed_once(self, gateway):
        # Clock after the newest period ends
        later = datetime(2026, 6, 1, tzinfo=UTC)
        use_case = GetWeeklyChartUseCase(gateway=gateway, clock=lambda: later)

        for _ in range(3):
            await use_case.execute(command(years_back=3))

        assert gateway.calls["fetch_period_list"] == 2

    async def test_refresh_picks_up_new_periods(self, periods):
        gateway = FakeChartGateway(periods=periods[:-10])
        later = periods[-1].from_
        use_case = GetWeeklyChartUseCase(gateway=gateway, clock=lambda: later)
        await use_case.execute(command(years_back=0))

        gateway.periods = list(periods)
        result = await use_case.execute(command(years_back=0))

        assert result.period == periods[-1]

    async def test_failed_refresh_keeps_cached_list(self, gateway):
        later = datetime(2026, 6, 1, tzinfo=UTC)
        use_case = GetWeeklyChartUseCase(gateway=gateway, clock=lambda: later)
        await use_case.execute(command(years_back=3))

        gateway.period_list_error = TransportError("offline")
        result = await use_case.execute(command(years_back=3))

        assert isinstance(result, ChartSuccess)
        assert gateway.calls["fetch_period_list"] == 2


class TestConcurrency:
    async def test_concurrent_requests_share_one_fetch(self, use_case, gateway):
        gateway.chart_gate = asyncio.Event()

        first = asyncio.create_task(use_case.execute(command()))
        second = asyncio.create_task(use_case.execute(command()))
        await until(lambda: gateway.calls["fetch_chart"] == 1)
        gateway.chart_gate.set()
        results = await asyncio.gather(first, second)

        assert gateway.calls["fetch_chart"] == 1
        assert gateway.calls["fetch_period_list"] == 1
        assert results[0].entries == results[1].entries
        assert all(isinstance(r, ChartSuccess) for r in results)

    async def test_different_periods_fetch_independently(self, use_case, gateway):
        results = await asyncio.gather(
            use_case.execute(command(years_back=1)),
            use_case.execute(command(years_back=2)),
        )

        assert gateway.calls["fetch_chart"] == 2
        assert results[0].period != results[1].period

    async def test_image_lookups_bounded_at_six(self, use_case, gateway, periods):
        gateway.charts = {p.key: make_entries(USER, p, 25) for p in periods}
        gateway.image_gate = asyncio.Event()

        task = asyncio.create_task(use_case.execute(command()))
        await until(lambda: gateway.calls["resolve_album_image"] == 6)
        for _ in range(20):
            await asyncio.sleep(0)
        in_flight_while_blocked = gateway.in_flight_images
        gateway.image_gate.set()
        result = await task

        assert in_flight_while_blocked == 6
        assert gateway.max_in_flight_images == 6
        assert gateway.calls["resolve_album_image"] == 25
        assert len(result.entries) == 25

    async def test_configured_concurrency_is_capped(self, gateway):
        assert GetWeeklyChartUseCase(gateway=gateway, image_concurrency=50).image_concurrency == 6
        assert GetWeeklyChartUseCase(gateway=gateway, image_concurrency=2).image_concurrency == 2


class TestCancellation:
    async def test_cancel_during_enrichment(self, use_case, gateway):
        gateway.image_gate = asyncio.Event()
        token = CancellationToken()

        task = asyncio.create_task(use_case.execute(command(), token))
        await until(lambda: gateway.calls["resolve_album_image"] == 6)
        token.cancel()
        result = await task

        gateway.image_gate.set()
        for _ in range(20):
            await asyncio.sleep(0)

        assert result == ChartCancelled()
        assert gateway.calls["resolve_album_image"] == 6
        assert len(use_case.cache) == 0

    async def test_cancel_before_start(self, use_case, gateway):
        token = CancellationToken()
        token.cancel()

        result = await use_case.execute(command(), token)

        assert isinstance(result, ChartCancelled)
        assert gateway.calls["fetch_chart"] == 0

    async def test_cancelling_one_caller_leaves_the_other(self, use_case, gateway):
        gateway.chart_gate = asyncio.Event()
        leaving = CancellationToken()

        staying_task = asyncio.create_task(use_case.execute(command()))
        leaving_task = asyncio.create_task(use_case.execute(command(), leaving))
        await until(lambda: gateway.calls["fetch_chart"] == 1)
        for _ in range(5):
            await asyncio.sleep(0)
        leaving.cancel()
        assert isinstance(await leaving_task, ChartCancelled)

        gateway.chart_gate.set()
        staying = await staying_task

        assert isinstance(staying, ChartSuccess)
        assert len(staying.entries) == 10
        assert gateway.calls["fetch_chart"] == 1

    async def test_request_after_cancel_starts_fresh_fetch(self, use_case, gateway):
        gateway.chart_gate = asyncio.Event()
        token = CancellationToken()

        task = asyncio.create_task(use_case.execute(command(), token))
        await until(lambda: gateway.calls["fetch_chart"] == 1)
        token.cancel()
        assert isinstance(await task, ChartCancelled)

        gateway.chart_gate.set()
        result = await use_case.execute(command())

        assert isinstance(result, ChartSuccess)
        assert gateway.calls["fetch_chart"] == 2


def test_command_rejects_negative_years():
    with pytest.raises(ValueError):
        GetWeeklyChartCommand(user_name=USER, years_back=-1)


async def test_unsorted_gateway_periods_still_select_containing_week(anchor):
    periods = make_weekly_periods(datetime(2022, 1, 2, 12, tzinfo=UTC), 80)
    gateway = FakeChartGateway(periods=list(reversed(periods)))
    use_case = GetWeeklyChartUseCase(gateway=gateway, clock=lambda: anchor)

    result = await use_case.execute(command(years_back=1))

    assert result.period.contains(target_instant(anchor, 1))
