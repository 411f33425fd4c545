"""Clock abstraction the poller waits on between cycles.

:class:`SystemClock` sleeps on the event loop.  :class:`ManualClock` only
fires when a test calls :meth:`ManualClock.advance`, which makes the poller's
schedule fully deterministic.

Typical test usage::

    clock = ManualClock()
    poller.start(client, clock, interval=10)
    await clock.block_until(1)   # poller is waiting for its first tick
    clock.advance(10)            # fire it
    await clock.block_until(1)   # cycle done, poller waiting again
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Protocol, runtime_checkable

__all__ = ["Clock", "SystemClock", "ManualClock"]


@runtime_checkable
class Clock(Protocol):
    """Anything that can produce a "wake me after *delay* seconds" signal."""

    def after(self, delay: float) -> Awaitable[None]:
        """Return an awaitable that completes once *delay* seconds have passed."""
        ...


class SystemClock:
    """Real-time clock backed by :func:`asyncio.sleep`."""

    def after(self, delay: float) -> Awaitable[None]:
        return asyncio.sleep(delay)


class ManualClock:
    """Test clock whose time only moves when :meth:`advance` is called.

    Every :meth:`after` call is counted in :attr:`after_calls`, which lets a
    test verify how many times the poller asked to be woken up.
    """

    def __init__(self) -> None:
        self._now = 0.0
        self._waiters: list[tuple[float, asyncio.Future[None]]] = []
        self.after_calls = 0

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        """Number of waiters that have neither fired nor been cancelled."""
        return sum(1 for _, fut in self._waiters if not fut.done())

    def after(self, delay: float) -> Awaitable[None]:
        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self.after_calls += 1
        self._waiters.append((self._now + delay, fut))
        return fut

    def advance(self, delay: float) -> None:
        """Move time forward and fire every waiter whose deadline has passed."""
        self._now += delay
        remaining: list[tuple[float, asyncio.Future[None]]] = []
        for deadline, fut in self._waiters:
            if fut.done():
                continue
            if deadline <= self._now:
                fut.set_result(None)
            else:
                remaining.append((deadline, fut))
        self._waiters = remaining

    async def block_until(self, waiters: int) -> None:
        """Yield to the event loop until at least *waiters* are pending."""
        while self.pending < waiters:
            await asyncio.sleep(0)
