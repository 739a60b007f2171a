# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Scan Session — capture → detect → validate loop at a checkpoint.

States (see SCAN_SESSION_FSM):

    idle --START--> scanning --CODE_ACCEPTED--> accepted --RESET--> idle
      |                |     --CODE_REJECTED--> rejected --RESET--> idle
      |                |     --FRAME_ERROR----> rejected
      |                +-----CANCEL---------->  idle
      +--ACQUIRE_FAILED---------------------->  rejected

The camera is held only while scanning and is released on every exit path
(code found, frame error, cancel, context exit). Scanning has no timeout:
it runs until a code is detected or the operator cancels.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Optional

from condoguard.credentials.outcomes import Rejected, ValidationOutcome
from condoguard.credentials.validator import CredentialValidator
from condoguard.kernel.clock import Clock, SystemClock
from condoguard.scanner.frame_source import CodeDetector, FrameSource
from condoguard.scanner.fsm import TransitionTable

logger = logging.getLogger("condoguard.scan_session")

START = "START"
ACQUIRE_FAILED = "ACQUIRE_FAILED"
CODE_ACCEPTED = "CODE_ACCEPTED"
CODE_REJECTED = "CODE_REJECTED"
FRAME_ERROR = "FRAME_ERROR"
CANCEL = "CANCEL"
RESET = "RESET"

SCAN_SESSION_FSM = {
    "states": ["idle", "scanning", "accepted", "rejected"],
    "initial_state": "idle",
    "transitions": [
        {"from": "idle", "event": START, "to": "scanning"},
        {"from": "idle", "event": ACQUIRE_FAILED, "to": "rejected"},
        {"from": "scanning", "event": CODE_ACCEPTED, "to": "accepted"},
        {"from": "scanning", "event": CODE_REJECTED, "to": "rejected"},
        {"from": "scanning", "event": FRAME_ERROR, "to": "rejected"},
        {"from": "scanning", "event": CANCEL, "to": "idle"},
        {"from": "accepted", "event": RESET, "to": "idle"},
        {"from": "rejected", "event": RESET, "to": "idle"},
    ],
}


class ScanState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ScanSession:
    """One checkpoint scanner bound to the validating tenant."""

    def __init__(
        self,
        source: FrameSource,
        detector: CodeDetector,
        validator: CredentialValidator,
        validator_tenant: str,
        clock: Optional[Clock] = None,
        table: Optional[TransitionTable] = None,
    ) -> None:
        self._source = source
        self._detector = detector
        self._validator = validator
        self._tenant = validator_tenant
        self._clock = clock or SystemClock()
        self._table = table or TransitionTable(SCAN_SESSION_FSM)
        self._state = ScanState(self._table.initial_state)
        self._outcome: Optional[ValidationOutcome] = None
        self._handle: Any = None
        self._held = False
        self._task: Optional[asyncio.Task] = None
        self._done = asyncio.Event()

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def outcome(self) -> Optional[ValidationOutcome]:
        return self._outcome

    @property
    def holds_frame_source(self) -> bool:
        return self._held

    # ── Transitions ─────────────────────────────────────────────

    def _fire(self, event: str) -> None:
        previous = self._state
        self._state = ScanState(self._table.transition(self._state.value, event))
        logger.info(
            "Scan session %s -[%s]-> %s", previous.value, event, self._state.value,
            extra={"tenant_id": self._tenant},
        )

    def _finish(self, outcome: ValidationOutcome, event: str) -> None:
        self._outcome = outcome
        self._fire(event)
        self._done.set()

    async def start(self) -> None:
        """Acquire the camera and begin scanning in the background."""
        # Fails fast (InvalidTransitionError) unless we are idle
        self._table.transition(self._state.value, START)
        try:
            handle = await self._source.acquire()
        except Exception as exc:
            logger.warning("Frame source acquisition failed: %s", exc)
            self._finish(Rejected.acquisition_failed(str(exc)), ACQUIRE_FAILED)
            return
        self._handle = handle
        self._held = True
        self._fire(START)
        self._task = asyncio.create_task(self._scan_loop())

    async def wait(self) -> Optional[ValidationOutcome]:
        """Wait for a decision. Returns None if the session was cancelled."""
        await self._done.wait()
        return self._outcome

    async def scan(self) -> Optional[ValidationOutcome]:
        await self.start()
        return await self.wait()

    async def cancel(self) -> None:
        """Operator stop while scanning. No-op in any other state."""
        if self._state is not ScanState.SCANNING:
            return
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._release()
        if self._state is ScanState.SCANNING:
            self._outcome = None
            self._fire(CANCEL)
            self._done.set()

    async def reset(self) -> None:
        """Return from accepted/rejected to idle, releasing the camera if still held."""
        if self._state is ScanState.IDLE:
            await self._release()
            return
        self._table.transition(self._state.value, RESET)
        await self._release()
        self._task = None
        self._outcome = None
        self._done = asyncio.Event()
        self._fire(RESET)

    async def close(self) -> None:
        await self.cancel()
        await self._release()

    async def __aenter__(self) -> ScanSession:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ── Capture loop ────────────────────────────────────────────

    async def _scan_loop(self) -> None:
        try:
            code = await self._next_code()
        except asyncio.CancelledError:
            await self._release()
            raise
        except Exception as exc:
            logger.warning("Frame source failed mid-session: %s", exc)
            await self._release()
            self._finish(Rejected.frame_source_failed(str(exc)), FRAME_ERROR)
            return

        # Stop the camera as soon as a code is found
        await self._release()
        try:
            outcome = self._validator.validate(code, self._tenant, self._clock.now())
        except Exception as exc:
            logger.error("Validation failed on scanned code: %s", exc, exc_info=True)
            self._finish(Rejected.malformed(str(exc)), CODE_REJECTED)
            return
        self._finish(outcome, CODE_ACCEPTED if outcome.accepted else CODE_REJECTED)

    async def _next_code(self) -> str:
        while True:
            frame = await self._source.next_frame(self._handle)
            try:
                code = self._detector(frame)
            except Exception as exc:
                logger.debug("Detector failed on frame, skipping: %s", exc)
                continue
            if code:
                return code

    async def _release(self) -> None:
        if not self._held:
            return
        self._held = False
        handle, self._handle = self._handle, None
        try:
            await self._source.release(handle)
        except Exception as exc:
            logger.warning("Frame source release failed: %s", exc)
