# src/flowbench/core/clock.py
"""Time and scheduling abstraction for the run simulation.

The controller never touches asyncio timers or the wall clock directly.
It asks a Clock for:
- now() - timestamps for state and history
- sleep() - the single suspension point of the stage loop
- every() - the periodic execution-duration ticker

AsyncioClock is the production implementation. SimulatedClock runs the
whole stage progression in virtual time so tests (and `flowbench run
--instant`) finish immediately and deterministically.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Ticker(Protocol):
    """Handle for a periodic callback."""

    @property
    def active(self) -> bool: ...

    def cancel(self) -> None:
        """Stop firing. Idempotent."""
        ...


class Clock(Protocol):
    """Source of time, suspension, and periodic callbacks."""

    def now(self) -> datetime:
        """Current time as a timezone-aware datetime."""
        ...

    async def sleep(self, seconds: float) -> None:
        """Suspend the calling coroutine for `seconds`."""
        ...

    def every(self, interval: float, callback: Callable[[], None]) -> Ticker:
        """Call `callback` every `interval` seconds until cancelled.

        The first call happens one interval from now, not immediately.
        """
        ...


class _AsyncioTicker:
    """Re-arming loop.call_later timer."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        interval: float,
        callback: Callable[[], None],
    ) -> None:
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None
        self._next_deadline = loop.time() + interval
        self._arm()

    @property
    def active(self) -> bool:
        return self._handle is not None

    def _arm(self) -> None:
        self._handle = self._loop.call_at(self._next_deadline, self._fire)

    def _fire(self) -> None:
        # Deadlines advance by whole intervals so the ticker does not drift
        self._next_deadline += self._interval
        self._arm()
        self._callback()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AsyncioClock:
    """Wall-clock implementation backed by the running event loop."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    def every(self, interval: float, callback: Callable[[], None]) -> Ticker:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        return _AsyncioTicker(asyncio.get_running_loop(), interval, callback)


class _SimulatedTicker:
    def __init__(self, clock: SimulatedClock, interval: timedelta, callback: Callable[[], None]) -> None:
        self.interval = interval
        self.callback = callback
        self._clock = clock
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if self._active:
            self._active = False
            self._clock._forget(self)


class SimulatedClock:
    """Virtual clock for deterministic runs.

    Time is kept as a timedelta offset (integer microseconds), so summing
    many small sleeps never drifts below a ticker deadline.

    sleep() advances virtual time instantly, fires every ticker whose
    deadline falls inside the slept interval (in deadline order, a deadline
    equal to the wake-up time included), then yields to the event loop once
    so other tasks get a chance to run.
    """

    DEFAULT_START = datetime(2024, 1, 1, tzinfo=UTC)

    def __init__(self, start: datetime | None = None) -> None:
        self._start = start or self.DEFAULT_START
        self._offset = timedelta(0)
        self._sequence = itertools.count()
        self._deadlines: list[tuple[timedelta, int, _SimulatedTicker]] = []

    @property
    def elapsed(self) -> timedelta:
        """Virtual time passed since construction."""
        return self._offset

    @property
    def active_tickers(self) -> int:
        return len({id(ticker) for _, _, ticker in self._deadlines if ticker.active})

    def now(self) -> datetime:
        return self._start + self._offset

    async def sleep(self, seconds: float) -> None:
        self.advance(seconds)
        await asyncio.sleep(0)

    def advance(self, seconds: float) -> None:
        """Move virtual time forward, firing due tickers on the way."""
        if seconds < 0:
            raise ValueError(f"cannot move time backwards: {seconds}")

        target = self._offset + timedelta(seconds=seconds)
        while self._deadlines and self._deadlines[0][0] <= target:
            deadline, _, ticker = heapq.heappop(self._deadlines)
            if not ticker.active:
                continue
            self._offset = deadline
            heapq.heappush(
                self._deadlines,
                (deadline + ticker.interval, next(self._sequence), ticker),
            )
            ticker.callback()
        self._offset = target

    def every(self, interval: float, callback: Callable[[], None]) -> Ticker:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        ticker = _SimulatedTicker(self, timedelta(seconds=interval), callback)
        heapq.heappush(
            self._deadlines,
            (self._offset + ticker.interval, next(self._sequence), ticker),
        )
        return ticker

    def _forget(self, ticker: _SimulatedTicker) -> None:
        self._deadlines = [entry for entry in self._deadlines if entry[2] is not ticker]
        heapq.heapify(self._deadlines)
