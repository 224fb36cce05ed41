"""Cooperative cancellation for poll loops and long waits."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from zapgate.errors import ScanAborted

T = TypeVar("T")


class CancelToken:
    """Tripped by a signal handler; interrupts any sleep or race in progress."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        self.reason = reason
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise ScanAborted(self.reason)

    async def sleep(self, seconds: float) -> None:
        """Sleep ``seconds`` unless cancelled first, in which case raise ``ScanAborted``."""
        self.raise_if_cancelled()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except TimeoutError:
            return
        raise ScanAborted(self.reason)

    async def race(self, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` unless cancelled first.

        On cancellation the pending awaitable is cancelled and waited for,
        then ``ScanAborted`` is raised.
        """
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            waiter.cancel()
            raise
        waiter.cancel()
        if task in done:
            return task.result()
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise ScanAborted(self.reason)
