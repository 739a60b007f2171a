# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Credentials API — issue visitor invitations and validate scanned codes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from condoguard.api.deps import get_context, get_current_actor
from condoguard.api.errors import RoleNotAllowedError
from condoguard.core.context import GuardContext
from condoguard.core.tenant import ActorIdentity


router = APIRouter(prefix="/credentials", tags=["credentials"])


class IssueRequest(BaseModel):
    host_grant_id: str = Field(..., min_length=1)
    expires_at: Optional[datetime] = None
    count: int = 1
    visitor_label: Optional[str] = None


class ValidateRequest(BaseModel):
    # Raw scanned text; anything that is not a credential string is rejected
    payload: Any = None


@router.post("/issue")
async def issue_credentials(
    req: IssueRequest,
    actor: ActorIdentity = Depends(get_current_actor),
    ctx: GuardContext = Depends(get_context),
):
    """Mint `count` codes for a host grant; `payloads` is what goes into the QR images."""
    host = ctx.grants.resolve_host(actor, req.host_grant_id)
    credentials = ctx.issuer.issue(
        host,
        actor,
        expires_at=req.expires_at,
        count=req.count,
        visitor_label=req.visitor_label,
    )
    return {
        "tenant_id": actor.tenant_id,
        "credentials": [c.model_dump(mode="json", by_alias=True) for c in credentials],
        "payloads": [ctx.codec.encode(c) for c in credentials],
    }


@router.post("/validate")
async def validate_credential(
    req: ValidateRequest,
    request: Request,
    actor: ActorIdentity = Depends(get_current_actor),
    ctx: GuardContext = Depends(get_context),
):
    """Checkpoint decision for a scanned payload, evaluated against the caller's tenant."""
    if not actor.role.can_validate:
        raise RoleNotAllowedError(
            actor.role.value, "validate credentials",
            trace_id=getattr(request.state, "trace_id", None),
        )
    outcome = ctx.validator.validate(req.payload, actor.tenant_id, ctx.clock.now())
    return outcome.to_dict()
