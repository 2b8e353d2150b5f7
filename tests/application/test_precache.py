"""Tests for background precaching of neighbouring years."""

import asyncio

from tests.fixtures.models import USER
from vinylogue.application.services.chart_cache import ChartCache
from vinylogue.application.services.precache import PrecacheCoordinator
from vinylogue.application.use_cases import GetWeeklyChartUseCase
from vinylogue.application.utilities import CancellationToken
from vinylogue.domain.charts import select_period
from vinylogue.domain.errors import TransportError


def coordinator_for(gateway, anchor) -> PrecacheCoordinator:
    charts = GetWeeklyChartUseCase(gateway=gateway, cache=ChartCache(), clock=lambda: anchor)
    return PrecacheCoordinator(charts)


async def test_precache_adjacent_warms_both_neighbours(gateway, periods, anchor):
    coordinator = coordinator_for(gateway, anchor)

    coordinator.precache_adjacent(USER, years_back=2)
    await coordinator.wait()

    cache = coordinator.charts.cache
    for offset in (1, 3):
        period = select_period(periods, anchor, offset)
        assert cache.get(USER, period) is not None
    assert cache.get(USER, select_period(periods, anchor, 2)) is None
    assert coordinator.active_count == 0


async def test_one_year_back_only_looks_further_back(gateway, anchor):
    coordinator = coordinator_for(gateway, anchor)

    tasks = coordinator.precache_adjacent(USER, years_back=1)
    await coordinator.wait()

    assert len(tasks) == 1
    assert gateway.calls["fetch_chart"] == 1


async def test_failures_are_not_raised(gateway, anchor):
    gateway.chart_error = TransportError("offline")
    coordinator = coordinator_for(gateway, anchor)

    tasks = coordinator.precache_adjacent(USER, years_back=2)
    await coordinator.wait()

    assert all(task.done() and task.exception() is None for task in tasks)


async def test_job_errors_are_contained(gateway, anchor):
    coordinator = coordinator_for(gateway, anchor)

    async def explode(token: CancellationToken) -> None:
        raise RuntimeError("boom")

    task = coordinator.start("job", explode)
    await coordinator.wait()

    assert task.exception() is None


async def test_restarting_a_key_cancels_the_previous_job(gateway, anchor):
    coordinator = coordinator_for(gateway, anchor)
    gate = asyncio.Event()
    seen_tokens: list[CancellationToken] = []

    async def blocked(token: CancellationToken) -> None:
        seen_tokens.append(token)
        await gate.wait()

    first = coordinator.start("rj:2", blocked)
    await asyncio.sleep(0)
    second = coordinator.start("rj:2", blocked)
    await asyncio.sleep(0)

    assert first.cancelled() or first.cancelling()
    assert seen_tokens[0].is_cancelled
    assert coordinator.active_count == 1

    gate.set()
    await second
    assert not seen_tokens[1].is_cancelled


async def test_cancel_all(gateway, anchor):
    coordinator = coordinator_for(gateway, anchor)
    gate = asyncio.Event()

    async def blocked(token: CancellationToken) -> None:
        await gate.wait()

    coordinator.start("a", blocked)
    coordinator.start("b", blocked)
    await asyncio.sleep(0)

    assert coordinator.cancel_all() == 2
    await asyncio.sleep(0)
    assert coordinator.active_count == 0
    assert coordinator.cancel("a") is False
