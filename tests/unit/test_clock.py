# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.
"""Unit tests for clocks and the Ticker."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from condoguard.kernel.clock import FixedClock, SystemClock, Ticker


class TestClocks:
    def test_system_clock_is_utc(self):
        now = SystemClock().now()
        assert now.tzinfo is not None
        assert now.utcoffset() == timedelta(0)

    def test_fixed_clock_advance(self):
        start = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        clock = FixedClock(start)
        assert clock.now() == start
        assert clock.advance(minutes=11) == start + timedelta(minutes=11)
        assert clock.now() == start + timedelta(minutes=11)

    def test_fixed_clock_naive_start_is_utc(self):
        clock = FixedClock(datetime(2026, 3, 1, 12, 0))
        assert clock.now().tzinfo == timezone.utc


class TestTicker:
    @pytest.mark.asyncio
    async def test_first_tick_is_immediate(self):
        ticks_seen = []

        async def cb(tick):
            ticks_seen.append(tick)

        ticker = Ticker(interval=60)
        ticker.on_tick(cb)
        await ticker.start()
        await asyncio.sleep(0.05)
        await ticker.stop()
        assert ticks_seen == [1]

    @pytest.mark.asyncio
    async def test_tick_increments(self):
        ticker = Ticker(interval=0.05)
        await ticker.start()
        await asyncio.sleep(0.2)
        await ticker.stop()
        assert ticker.tick >= 2

    @pytest.mark.asyncio
    async def test_stop_waits_for_running_callback(self):
        finished = []

        async def slow(tick):
            await asyncio.sleep(0.1)
            finished.append(tick)

        ticker = Ticker(interval=60)
        ticker.on_tick(slow)
        await ticker.start()
        await asyncio.sleep(0.01)
        await ticker.stop()
        assert finished == [1]
        assert ticker.running is False

    @pytest.mark.asyncio
    async def test_callback_error_does_not_kill_loop(self):
        calls = []

        async def boom(tick):
            calls.append(tick)
            raise RuntimeError("boom")

        ticker = Ticker(interval=0.03)
        ticker.on_tick(boom)
        await ticker.start()
        await asyncio.sleep(0.15)
        await ticker.stop()
        assert len(calls) >= 2

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        ticker = Ticker(interval=0.05)
        await ticker.stop()  # before start
        await ticker.start()
        await ticker.stop()
        await ticker.stop()

    def test_initial_state(self):
        ticker = Ticker()
        assert ticker.tick == 0
        assert ticker.running is False
        assert ticker.interval == 10.0
