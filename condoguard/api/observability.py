# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Observability API — Health check, metrics, manual expiration sweep.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from condoguard.api.deps import get_context, get_current_actor
from condoguard.api.errors import RoleNotAllowedError
from condoguard.core.context import GuardContext
from condoguard.core.metrics import guard_metrics
from condoguard.core.tenant import ActorIdentity, Role
from condoguard.kernel.redis_client import redis_status

router = APIRouter(tags=["observability"])


@router.get("/health")
async def health_check(ctx: GuardContext = Depends(get_context)):
    """Health check with component status."""
    return {
        "status": "degraded" if ctx.store.dirty else "ok",
        "version": "0.1.0",
        "store_version": ctx.store.version,
        "redis": await redis_status(),
        "sweeper": ctx.sweeper.state.value,
        "metrics": guard_metrics.snapshot(),
    }


@router.get("/api/metrics")
async def get_metrics():
    """Return current service metrics."""
    return guard_metrics.snapshot()


@router.post("/api/sweeper/run")
async def run_sweep(
    request: Request,
    actor: ActorIdentity = Depends(get_current_actor),
    ctx: GuardContext = Depends(get_context),
):
    """Run one expiration sweep right now instead of waiting for the next tick."""
    if actor.role is not Role.OWNER_ADMIN:
        raise RoleNotAllowedError(
            actor.role.value, "run the expiration sweep",
            trace_id=getattr(request.state, "trace_id", None),
        )
    removed = await ctx.sweeper.sweep_once(ctx.clock.now())
    return {"removed": removed}
