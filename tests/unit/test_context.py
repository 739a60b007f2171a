# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.
"""Unit tests for GuardContext wiring."""

import asyncio
from datetime import timedelta

import pytest

from condoguard.core.context import GuardContext
from condoguard.protocols.schema import AccessGrant
from condoguard.scanner.frame_source import ScriptedFrameSource, text_frame_detector
from condoguard.services.sweeper import SweeperState
from condoguard.storage.persistence import InMemoryGrantPersistence


class TestGuardContext:
    @pytest.mark.asyncio
    async def test_open_sweeps_and_close_stops(self, clock):
        seed = [
            AccessGrant(id="r1", tenant_id="t1", display_name="Luis", unit="101",
                        expires_at=clock.now() - timedelta(minutes=1)),
            AccessGrant(id="r2", tenant_id="t1", display_name="Ana", unit="102"),
        ]
        persistence = InMemoryGrantPersistence()
        ctx = GuardContext(persistence=persistence, clock=clock, seed=seed, sweep_interval=60)
        await ctx.open()
        await asyncio.sleep(0.05)
        try:
            assert ctx.sweeper.state is not SweeperState.STOPPED
        finally:
            await ctx.close()
        assert ctx.sweeper.state is SweeperState.STOPPED
        assert [g.id for g in ctx.store.all()] == ["r2"]
        assert [g.id for g in await persistence.load_all()] == ["r2"]

    @pytest.mark.asyncio
    async def test_end_to_end_invitation(self, clock, host_grant, occupant, checkpoint):
        ctx = GuardContext(clock=clock, seed=[host_grant])
        host = ctx.grants.resolve_host(occupant, "r1")
        credentials = ctx.issuer.issue(host, occupant, count=2)
        payloads = [ctx.codec.encode(c) for c in credentials]

        source = ScriptedFrameSource(payloads[:1])
        async with ctx.new_scan_session(checkpoint, source, text_frame_detector) as session:
            outcome = await session.scan()
        assert outcome.accepted
        assert outcome.credential.credential_id == credentials[0].credential_id

        clock.advance(hours=24)
        late = ctx.validator.validate(payloads[1], checkpoint.tenant_id, clock.now())
        assert late.label == "expired"
