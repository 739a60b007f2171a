# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Guard Context — holds the runtime references of the access core.

Initialized at startup, injected into API routes via get_guard_context().
Construction and teardown are explicit: nothing here is created at import.
"""

from __future__ import annotations

from typing import Iterable, Optional

from condoguard.core.config import settings
from condoguard.core.tenant import ActorIdentity
from condoguard.credentials.codec import CredentialCodec
from condoguard.credentials.issuer import CredentialIssuer
from condoguard.credentials.validator import CredentialValidator
from condoguard.kernel.clock import Clock, SystemClock
from condoguard.protocols.schema import AccessGrant
from condoguard.scanner.frame_source import CodeDetector, FrameSource
from condoguard.scanner.session import ScanSession
from condoguard.services.grants import GrantService
from condoguard.services.sweeper import ExpirationSweeper
from condoguard.storage.grant_store import AccessGrantStore
from condoguard.storage.persistence import GrantPersistence


class GuardContext:
    """
    Holds all runtime components.
    Created once at startup, used by all API handlers.
    """

    def __init__(
        self,
        persistence: Optional[GrantPersistence] = None,
        clock: Optional[Clock] = None,
        seed: Optional[Iterable[AccessGrant]] = None,
        sweep_interval: Optional[float] = None,
    ) -> None:
        self.clock = clock or SystemClock()
        self.store = AccessGrantStore(persistence, seed=seed)
        self.codec = CredentialCodec()
        self.issuer = CredentialIssuer(clock=self.clock)
        self.validator = CredentialValidator(self.codec)
        self.grants = GrantService(self.store)
        self.sweeper = ExpirationSweeper(
            self.store,
            clock=self.clock,
            interval=sweep_interval or settings.SWEEP_INTERVAL,
        )

    async def open(self) -> None:
        await self.store.open()
        await self.sweeper.start()

    async def close(self) -> None:
        await self.sweeper.stop()
        await self.store.close()

    def new_scan_session(
        self,
        actor: ActorIdentity,
        source: FrameSource,
        detector: CodeDetector,
    ) -> ScanSession:
        """Scanner bound to the checkpoint actor's tenant."""
        return ScanSession(
            source, detector, self.validator, actor.tenant_id, clock=self.clock,
        )


# ── Global singleton ────────────────────────────────────────

_ctx: Optional[GuardContext] = None


def init_guard_context(
    persistence: Optional[GrantPersistence] = None,
    clock: Optional[Clock] = None,
    seed: Optional[Iterable[AccessGrant]] = None,
) -> GuardContext:
    global _ctx
    _ctx = GuardContext(persistence=persistence, clock=clock, seed=seed)
    return _ctx


def get_guard_context() -> GuardContext:
    if _ctx is None:
        raise RuntimeError("GuardContext not initialized")
    return _ctx


def reset_guard_context() -> None:
    global _ctx
    _ctx = None
