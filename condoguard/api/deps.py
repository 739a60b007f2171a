# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
API Dependencies — FastAPI dependency injection.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException

from condoguard.core.context import GuardContext, get_guard_context
from condoguard.core.tenant import ActorIdentity, Role


async def get_current_actor(
    x_tenant_id: Optional[str] = Header(None, alias="X-Tenant-Id"),
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_name: Optional[str] = Header(None, alias="X-User-Name"),
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
    x_user_unit: Optional[str] = Header(None, alias="X-User-Unit"),
) -> ActorIdentity:
    """
    Build the caller identity from request headers.

    Headers:
      - X-Tenant-Id:   condominium isolation key (required)
      - X-User-Role:   X | A | B (defaults to A, the read-only checkpoint)
      - X-User-Unit:   required for role B
      - X-User-Id / X-User-Name: copied onto issued credentials

    Headers are trusted as-is; authentication happens upstream.
    """
    if not x_tenant_id:
        raise HTTPException(status_code=401, detail="Missing tenant identification")
    try:
        role = Role(x_user_role or Role.CHECKPOINT.value)
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role '{x_user_role}'")
    try:
        return ActorIdentity(
            tenant_id=x_tenant_id,
            user_id=x_user_id or "",
            name=x_user_name or "",
            role=role,
            unit=x_user_unit or None,
        )
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc))


def get_context() -> GuardContext:
    return get_guard_context()
