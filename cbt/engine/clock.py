"""Countdown clocks driving a session's remaining time."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Protocol

from cbt.config import TICK_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

TickCallback = Callable[[int], None]
ExpireCallback = Callable[[], None]


class ClockSource(Protocol):
    """Tick provider used by a session."""

    @property
    def running(self) -> bool: ...

    @property
    def remaining(self) -> int: ...

    def start(
        self, total_seconds: int, on_tick: TickCallback, on_expire: ExpireCallback
    ) -> None: ...

    def stop(self) -> None: ...


class CountdownClock:
    """
    Asyncio countdown that derives remaining time from elapsed time.

    Remaining seconds are always ``total - floor(now - started)`` read from
    ``time_source``, so late or throttled wake-ups never let the countdown
    run slower than real time. ``on_tick`` fires whenever the whole-second
    value changes; ``on_expire`` fires once when it reaches zero, after
    which the clock is stopped.
    """

    def __init__(
        self,
        interval: float = TICK_INTERVAL_SECONDS,
        time_source: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._interval = interval
        self._time = time_source
        self._sleep = sleep
        self._task: asyncio.Task | None = None
        self._total = 0
        self._started_at: float | None = None
        self._remaining = 0
        self._running = False
        self._on_tick: TickCallback | None = None
        self._on_expire: ExpireCallback | None = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def remaining(self) -> int:
        """Live remaining seconds while running, last value once stopped."""
        if self._running:
            return self._compute()
        return self._remaining

    def start(
        self, total_seconds: int, on_tick: TickCallback, on_expire: ExpireCallback
    ) -> None:
        if self._running:
            raise RuntimeError("Clock is already running")
        if total_seconds <= 0:
            raise ValueError("total_seconds must be positive")
        self._total = total_seconds
        self._remaining = total_seconds
        self._started_at = self._time()
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._running = True
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="countdown_clock"
        )
        logger.debug("Clock started with %s seconds", total_seconds)

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        task = self._task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        logger.debug("Clock stopped at %s seconds", self._remaining)

    def _compute(self) -> int:
        elapsed = self._time() - self._started_at
        return max(0, self._total - int(elapsed // 1))

    def _next_delay(self) -> float:
        # Wake on the next interval boundary measured from the start
        elapsed = self._time() - self._started_at
        delay = self._interval - (elapsed % self._interval)
        return delay if delay > 0 else self._interval

    async def _run(self) -> None:
        while self._running:
            await self._sleep(self._next_delay())
            if not self._running:
                return
            remaining = self._compute()
            if remaining != self._remaining:
                self._remaining = remaining
                self._on_tick(remaining)
            if remaining == 0 and self._running:
                self._running = False
                logger.debug("Clock expired")
                self._on_expire()
                return


class ManualClock:
    """
    Clock advanced explicitly by its owner.

    Useful when the host already has its own timer (a UI frame loop, a
    scheduler) and for deterministic tests.
    """

    def __init__(self) -> None:
        self._remaining = 0
        self._running = False
        self._on_tick: TickCallback | None = None
        self._on_expire: ExpireCallback | None = None
        self.starts = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def remaining(self) -> int:
        return self._remaining

    def start(
        self, total_seconds: int, on_tick: TickCallback, on_expire: ExpireCallback
    ) -> None:
        if self._running:
            raise RuntimeError("Clock is already running")
        if total_seconds <= 0:
            raise ValueError("total_seconds must be positive")
        self._remaining = total_seconds
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._running = True
        self.starts += 1

    def stop(self) -> None:
        self._running = False

    def advance(self, seconds: int = 1) -> None:
        """Deliver ``seconds`` ticks, stopping early if the clock stops."""
        for _ in range(seconds):
            if not self._running:
                return
            self._remaining -= 1
            self._on_tick(self._remaining)
            if self._remaining == 0 and self._running:
                self._running = False
                self._on_expire()
                return
