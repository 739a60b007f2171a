# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Clocks — wall-clock time sources and the periodic Ticker.

Every time-dependent component takes a Clock so tests can pin "now".
The Ticker drives background work (the expiration sweep) on a fixed period.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Coroutine, Optional, Protocol

logger = logging.getLogger("condoguard.clock")


class Clock(Protocol):
    def now(self) -> datetime:
        """Current time as a timezone-aware UTC datetime."""
        ...


class SystemClock:
    """Reads the host's wall clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Manually driven clock (tests, replays)."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self._now = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
        if self._now.tzinfo is None:
            self._now = self._now.replace(tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        self._now = value

    def advance(self, **kwargs: float) -> datetime:
        """Move forward by a timedelta spec, e.g. ``advance(minutes=5)``."""
        self._now = self._now + timedelta(**kwargs)
        return self._now


class Ticker:
    """
    Emits periodic ticks to async callbacks.

    The first tick fires immediately on start. Stopping never interrupts a
    callback that is already running: stop() wakes the idle wait and then
    waits for the loop to exit on its own.
    """

    def __init__(self, interval: float = 10.0) -> None:
        """
        Args:
            interval: Tick interval in seconds.
        """
        self._interval = interval
        self._tick: int = 0
        self._running: bool = False
        self._task: Optional[asyncio.Task] = None
        self._wakeup: Optional[asyncio.Event] = None
        self._callbacks: list[Callable[[int], Coroutine[Any, Any, None]]] = []

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._running

    def on_tick(self, callback: Callable[[int], Coroutine[Any, Any, None]]) -> None:
        """Register an async callback to be invoked on each tick."""
        self._callbacks.append(callback)

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._wakeup = asyncio.Event()
        self._task = asyncio.create_task(self._loop())
        logger.info("Ticker started (interval=%.2fs)", self._interval)

    async def _loop(self) -> None:
        while self._running:
            self._tick += 1
            for cb in list(self._callbacks):
                try:
                    await cb(self._tick)
                except Exception as exc:
                    logger.error("Tick callback error at tick %d: %s", self._tick, exc)
            if not self._running:
                break
            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass

    async def stop(self) -> None:
        """Stop future ticks. Safe to call repeatedly or before start()."""
        self._running = False
        if self._wakeup is not None:
            self._wakeup.set()
        if self._task:
            task, self._task = self._task, None
            try:
                await task
            except asyncio.CancelledError:
                pass
            logger.info("Ticker stopped at tick %d", self._tick)
