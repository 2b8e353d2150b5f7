"""Background warming of the chart cache for neighbouring years.

Each precache job is keyed; starting a job cancels any running job with the
same key. Failures are logged and never propagate to the caller.
"""

import asyncio
from collections.abc import Awaitable, Callable

from attrs import define, field

from vinylogue.application.use_cases.get_weekly_chart import (
    ChartFailed,
    GetWeeklyChartCommand,
    GetWeeklyChartUseCase,
)
from vinylogue.application.utilities import CancellationToken
from vinylogue.config import get_logger

logger = get_logger(__name__).bind(service="precache")


@define(slots=True)
class PrecacheCoordinator:
    charts: GetWeeklyChartUseCase
    _tasks: dict[str, asyncio.Task[None]] = field(factory=dict, init=False)
    _tokens: dict[str, CancellationToken] = field(factory=dict, init=False)

    @property
    def active_count(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    def start(
        self,
        key: str,
        job: Callable[[CancellationToken], Awaitable[object]],
    ) -> asyncio.Task[None]:
        """Run ``job`` in the background under ``key``, replacing any previous job."""
        self.cancel(key)

        token = CancellationToken()

        async def run() -> None:
            try:
                await job(token)
                logger.debug("Precache completed", key=key)
            except asyncio.CancelledError:
                logger.debug("Precache cancelled", key=key)
                raise
            except Exception as e:
                logger.warning(f"Precache failed for {key}: {e}")

        task = asyncio.create_task(run())
        self._tasks[key] = task
        self._tokens[key] = token

        def _cleanup(finished: asyncio.Task[None]) -> None:
            if self._tasks.get(key) is finished:
                del self._tasks[key]
                self._tokens.pop(key, None)

        task.add_done_callback(_cleanup)
        return task

    def cancel(self, key: str) -> bool:
        token = self._tokens.pop(key, None)
        task = self._tasks.pop(key, None)
        if token is not None:
            token.cancel()
        if task is None or task.done():
            return False
        task.cancel()
        logger.debug("Cancelled precache", key=key)
        return True

    def cancel_all(self) -> int:
        cancelled = sum(1 for key in list(self._tasks) if self.cancel(key))
        if cancelled:
            logger.info("Cancelled precache jobs", count=cancelled)
        return cancelled

    def precache_adjacent(
        self, user_name: str, years_back: int, min_play_count: int = 1
    ) -> list[asyncio.Task[None]]:
        """Warm the cache for one year further back and one year closer."""
        offsets = [years_back + 1]
        if years_back - 1 >= 1:
            offsets.append(years_back - 1)

        tasks = []
        for offset in offsets:
            command = GetWeeklyChartCommand(
                user_name=user_name,
                years_back=offset,
                min_play_count=min_play_count,
            )

            async def job(token: CancellationToken, command=command) -> None:
                result = await self.charts.execute(command, token)
                if isinstance(result, ChartFailed):
                    logger.warning(
                        "Precache fetch failed",
                        years_back=command.years_back,
                        stage=result.stage.value,
                        error_kind=result.error_kind,
                    )

            tasks.append(self.start(f"{user_name}:{offset}", job))
        return tasks

    async def wait(self) -> None:
        """Wait for every running job to finish or be cancelled."""
        pending = [task for task in self._tasks.values() if not task.done()]
        if pending:
            await asyncio.wait(pending)
