"""Cooperative cancellation for chart fetches.

A token belongs to one invocation. Cancelling it stops that invocation at its
next check point and never touches other invocations.
"""

import asyncio

from attrs import define, field


class OperationCancelled(Exception):
    """Raised internally to unwind an invocation whose token was cancelled."""


@define(slots=True)
class CancellationToken:
    """Wraps an ``asyncio.Event`` that flips once when cancellation is requested."""

    _event: asyncio.Event = field(factory=asyncio.Event, init=False, repr=False)

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        """Suspend until the token is cancelled."""
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled
