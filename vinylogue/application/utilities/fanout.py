"""Bounded concurrent fan-out with per-item failure capture.

Results are written back by input index, so callers always see them in input
order regardless of completion order.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Generic, TypeVar

from attrs import define, field, validators

from vinylogue.application.utilities.cancellation import (
    CancellationToken,
    OperationCancelled,
)
from vinylogue.config import get_logger

T = TypeVar("T")
R = TypeVar("R")


@define(frozen=True, slots=True)
class BoundedFanOut(Generic[T, R]):
    """Run an async function over items with a concurrency ceiling.

    Attributes:
        concurrency_limit: Maximum number of items in flight at once
        logger_instance: Logger for recording processing events
    """

    concurrency_limit: int = field(
        validator=[validators.instance_of(int), validators.ge(1)]
    )
    logger_instance: Any = field(factory=lambda: get_logger(__name__))

    async def process(
        self,
        items: Sequence[T],
        process_func: Callable[[T], Awaitable[R]],
        token: CancellationToken | None = None,
    ) -> list[R | Exception]:
        """Process every item, capturing exceptions in the result slot.

        Args:
            items: Items to process
            process_func: Async function that processes a single item
            token: Optional cancellation token checked at each dispatch

        Returns:
            One result or captured exception per item, in input order

        Raises:
            OperationCancelled: The token fired before all items finished;
                pending work is cancelled and its results discarded.
        """
        if not items:
            return []

        results: list[R | Exception | None] = [None] * len(items)
        semaphore = asyncio.Semaphore(self.concurrency_limit)

        async def run(index: int, item: T) -> None:
            async with semaphore:
                if token is not None and token.is_cancelled:
                    return
                try:
                    results[index] = await process_func(item)
                except Exception as e:
                    results[index] = e

        tasks = [asyncio.create_task(run(i, item)) for i, item in enumerate(items)]
        self.logger_instance.debug(
            "Fan-out started",
            total_items=len(items),
            concurrency_limit=self.concurrency_limit,
        )

        try:
            if token is None:
                await asyncio.gather(*tasks)
            else:
                await self._wait_or_cancel(tasks, token)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        return results  # type: ignore[return-value]

    async def _wait_or_cancel(
        self, tasks: list[asyncio.Task[None]], token: CancellationToken
    ) -> None:
        token.raise_if_cancelled()

        waiter = asyncio.create_task(token.wait())
        gathered = asyncio.gather(*tasks)
        try:
            await asyncio.wait({gathered, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            gathered.cancel()
            raise
        finally:
            waiter.cancel()

        if not gathered.done():
            gathered.cancel()
            pending = sum(1 for task in tasks if not task.done())
            self.logger_instance.debug("Fan-out cancelled", abandoned=pending)
            raise OperationCancelled

        # Surface unexpected errors from the workers themselves
        gathered.result()
