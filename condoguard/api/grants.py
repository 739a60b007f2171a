# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Grants API — residency/access records of the caller's condominium.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from condoguard.api.deps import get_context, get_current_actor
from condoguard.core.context import GuardContext
from condoguard.core.tenant import ActorIdentity
from condoguard.protocols.schema import AccessGrant, GrantKind, GrantStatus

router = APIRouter(prefix="/grants", tags=["grants"])


# ── Request Models ──────────────────────────────────────────

class GrantCreateRequest(BaseModel):
    display_name: str = Field(..., min_length=1)
    unit: Optional[str] = None
    kind: GrantKind = GrantKind.OCCUPANT
    vehicle_plate: Optional[str] = None
    expires_at: Optional[datetime] = None


class GrantUpdateRequest(BaseModel):
    display_name: Optional[str] = None
    unit: Optional[str] = None
    kind: Optional[GrantKind] = None
    status: Optional[GrantStatus] = None
    vehicle_plate: Optional[str] = None


class ExpiryRequest(BaseModel):
    expires_at: Optional[datetime] = None


# ── Routes ──────────────────────────────────────────────────

@router.get("")
async def list_grants(
    kind: Optional[GrantKind] = Query(None),
    q: Optional[str] = Query(None, description="Search name, unit or plate"),
    actor: ActorIdentity = Depends(get_current_actor),
    ctx: GuardContext = Depends(get_context),
):
    grants = ctx.grants.list_for(actor, kind=kind, search=q)
    return {"grants": [g.model_dump(mode="json") for g in grants], "count": len(grants)}


@router.post("", status_code=201)
async def create_grant(
    req: GrantCreateRequest,
    actor: ActorIdentity = Depends(get_current_actor),
    ctx: GuardContext = Depends(get_context),
) -> AccessGrant:
    return await ctx.grants.create(
        actor,
        display_name=req.display_name,
        unit=req.unit,
        kind=req.kind,
        vehicle_plate=req.vehicle_plate,
        expires_at=req.expires_at,
    )


@router.patch("/{grant_id}")
async def update_grant(
    grant_id: str,
    req: GrantUpdateRequest,
    actor: ActorIdentity = Depends(get_current_actor),
    ctx: GuardContext = Depends(get_context),
) -> AccessGrant:
    # null only means "clear" for the optional plate
    changes = {
        key: value
        for key, value in req.model_dump(exclude_unset=True).items()
        if value is not None or key == "vehicle_plate"
    }
    return await ctx.grants.update(actor, grant_id, **changes)


@router.put("/{grant_id}/expiry")
async def set_grant_expiry(
    grant_id: str,
    req: ExpiryRequest,
    actor: ActorIdentity = Depends(get_current_actor),
    ctx: GuardContext = Depends(get_context),
) -> AccessGrant:
    """Extend, shorten or clear (null) the automatic expiry of a grant."""
    return await ctx.grants.extend(actor, grant_id, req.expires_at)


@router.delete("/{grant_id}", status_code=204)
async def delete_grant(
    grant_id: str,
    actor: ActorIdentity = Depends(get_current_actor),
    ctx: GuardContext = Depends(get_context),
):
    await ctx.grants.delete(actor, grant_id)
