# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Expiration Sweeper — purges expired AccessGrants in the background.

Runs as a background asyncio task driven by a Ticker. The first sweep
happens immediately at start (to catch grants that expired while the service
was down), then every `interval` seconds.

Sweep strategy:
  - Take a store snapshot, compute the full retained set
    (no expiry, or expiry strictly in the future).
  - Nothing expired -> no write at all.
  - Otherwise install the retained set with one compare-and-swap
    replace_all. If a user write slipped in between, recompute from a fresh
    snapshot (bounded attempts) and let the next tick finish the job.
Failures are logged and retried on the next tick; the loop never dies.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from condoguard.core.config import settings
from condoguard.core.metrics import guard_metrics
from condoguard.kernel.clock import Clock, SystemClock, Ticker
from condoguard.storage.grant_store import AccessGrantStore

logger = logging.getLogger("condoguard.sweeper")


class SweeperState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class ExpirationSweeper:
    """Periodic background task that removes expired grants from the store."""

    def __init__(
        self,
        store: AccessGrantStore,
        clock: Optional[Clock] = None,
        interval: Optional[float] = None,
        max_attempts: Optional[int] = None,
    ) -> None:
        self._store = store
        self._clock = clock or SystemClock()
        self._interval = interval or settings.SWEEP_INTERVAL
        self._max_attempts = max_attempts or settings.SWEEP_MAX_ATTEMPTS
        self._state = SweeperState.IDLE
        self._ticker: Optional[Ticker] = None

    @property
    def state(self) -> SweeperState:
        return self._state

    @property
    def ticker(self) -> Optional[Ticker]:
        return self._ticker

    # ── One sweep ───────────────────────────────────────────────

    async def sweep_once(self, now: datetime) -> int:
        """
        Remove every grant with expires_at <= now.

        Returns the number of grants removed (0 if nothing expired, or if
        every CAS attempt lost to a concurrent writer).
        """
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        for attempt in range(1, self._max_attempts + 1):
            snap = self._store.snapshot()
            retained = [g for g in snap.grants if not g.is_expired(now)]
            removed = len(snap.grants) - len(retained)
            if removed == 0:
                return 0
            if await self._store.replace_all(retained, expected_version=snap.version):
                guard_metrics.inc("sweep_removed", removed)
                logger.info(
                    "Sweeper removed %d expired grant(s) (store v%d)",
                    removed, self._store.version,
                )
                return removed
            logger.debug("Sweep attempt %d lost a CAS race, retrying", attempt)

        logger.warning("Sweep gave up after %d attempts, next tick will retry", self._max_attempts)
        return 0

    async def _on_tick(self, tick: int) -> None:
        if self._state is SweeperState.STOPPED:
            return
        self._state = SweeperState.RUNNING
        start = time.time()
        try:
            if self._store.dirty:
                await self._store.flush()
            await self.sweep_once(self._clock.now())
            guard_metrics.inc("sweep_runs")
        except Exception as exc:
            guard_metrics.inc("sweep_errors")
            logger.error("Sweep error at tick %d: %s", tick, exc, exc_info=True)
        finally:
            guard_metrics.observe("sweep", (time.time() - start) * 1000)
            if self._state is SweeperState.RUNNING:
                self._state = SweeperState.IDLE

    # ── Background task ─────────────────────────────────────────

    async def run(
        self,
        interval: Optional[float] = None,
        clock: Optional[Clock] = None,
    ) -> Optional[Ticker]:
        """
        Start sweeping in the background and return the driving Ticker.

        Calling run() on a started sweeper returns the existing ticker.
        A stopped sweeper stays stopped: run() returns None.
        """
        if self._ticker is not None:
            return self._ticker
        if self._state is SweeperState.STOPPED:
            logger.warning("Expiration sweeper already stopped, not restarting")
            return None
        if interval is not None:
            self._interval = interval
        if clock is not None:
            self._clock = clock
        self._ticker = Ticker(interval=self._interval)
        self._ticker.on_tick(self._on_tick)
        await self._ticker.start()
        logger.info("Expiration sweeper started (interval=%.1fs)", self._interval)
        return self._ticker

    async def start(self) -> None:
        await self.run()

    async def stop(self) -> None:
        """Stop future sweeps. An in-flight sweep completes first. Idempotent."""
        ticker, self._ticker = self._ticker, None
        if ticker is not None:
            await ticker.stop()
            logger.info("Expiration sweeper stopped")
        self._state = SweeperState.STOPPED
