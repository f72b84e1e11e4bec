"""Timer and sleep abstraction.

Every delay in the engine (autosave interval, simulation debounce, status
auto-clear, retry backoff) goes through a ``Clock`` so that production code
runs on the asyncio loop while tests drive a ``VirtualClock`` forward
deterministically::

    clock = VirtualClock()
    controller = WorkspaceController(..., clock=clock)
    await clock.advance(10)  # fires the autosave timer exactly once
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TimerHandle(Protocol):
    def cancel(self) -> None: ...

    def cancelled(self) -> bool: ...


@runtime_checkable
class Clock(Protocol):
    """Scheduling primitives owned by the engine's components."""

    def now(self) -> float:
        """Current time in seconds (monotonic, arbitrary origin)."""
        ...

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        """Run ``callback(*args)`` once after ``delay`` seconds."""
        ...

    async def sleep(self, delay: float) -> None: ...


class LoopClock:
    """Clock backed by the running asyncio event loop."""

    def now(self) -> float:
        return asyncio.get_running_loop().time()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback, *args)

    async def sleep(self, delay: float) -> None:
        await asyncio.sleep(delay)


@dataclass(order=True)
class _VirtualTimer:
    when: float
    seq: int
    callback: Callable[..., Any] = field(compare=False)
    args: tuple[Any, ...] = field(compare=False, default=())
    _cancelled: bool = field(compare=False, default=False)

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled


class VirtualClock:
    """Manually advanced clock for deterministic tests.

    Time only moves inside ``advance``.  After each fired timer the event
    loop is given ``settle_rounds`` iterations so that tasks woken by the
    timer (including chains of awaits on in-memory fakes) run to their next
    real suspension point before the next timer fires.
    """

    def __init__(self, start: float = 0.0, *, settle_rounds: int = 50) -> None:
        self._now = start
        self._queue: list[_VirtualTimer] = []
        self._seq = itertools.count()
        self._settle_rounds = settle_rounds

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        timer = _VirtualTimer(self._now + max(delay, 0.0), next(self._seq), callback, args)
        heapq.heappush(self._queue, timer)
        return timer

    async def sleep(self, delay: float) -> None:
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self.call_later(delay, _resolve, future)
        await future

    @property
    def pending(self) -> int:
        """Number of live (not cancelled) timers."""
        return sum(1 for timer in self._queue if not timer.cancelled())

    async def advance(self, seconds: float) -> None:
        """Move time forward, firing every timer that falls due, in order."""
        target = self._now + seconds
        await self.settle()
        while self._queue and self._queue[0].when <= target:
            timer = heapq.heappop(self._queue)
            if timer.cancelled():
                continue
            self._now = timer.when
            timer.callback(*timer.args)
            await self.settle()
        self._now = target

    async def settle(self) -> None:
        """Let already-runnable tasks progress without moving time."""
        for _ in range(self._settle_rounds):
            await asyncio.sleep(0)


def _resolve(future: asyncio.Future[None]) -> None:
    if not future.done():
        future.set_result(None)
