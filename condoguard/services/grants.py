# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Grant Service — role-gated management of residency/access records.

Rules:
  - X (owner-admin) manages every grant of their tenant.
  - B (occupant) manages only grants of their own unit; new grants are
    always placed in that unit.
  - A (checkpoint) is read-only.
  - A grant id from another tenant behaves exactly like a missing id.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from condoguard.core.errors import GrantNotFound, InvalidGrant, PermissionDenied
from condoguard.core.tenant import ActorIdentity, Role
from condoguard.protocols.schema import AccessGrant, GrantKind, GrantStatus
from condoguard.storage.grant_store import AccessGrantStore

logger = logging.getLogger("condoguard.grants")

EDITABLE_FIELDS = ("display_name", "unit", "kind", "status", "vehicle_plate")


class GrantService:
    def __init__(self, store: AccessGrantStore) -> None:
        self._store = store

    @property
    def store(self) -> AccessGrantStore:
        return self._store

    # ── Queries ─────────────────────────────────────────────────

    def list_for(
        self,
        actor: ActorIdentity,
        kind: Optional[GrantKind] = None,
        search: Optional[str] = None,
    ) -> List[AccessGrant]:
        """Grants visible to `actor`, optionally filtered by kind and free text."""
        grants = self._store.list(actor.tenant_id)
        if actor.role.is_unit_scoped:
            grants = [g for g in grants if g.unit == actor.unit]
        if kind is not None:
            grants = [g for g in grants if g.kind == kind]
        if search:
            needle = search.strip().lower()
            grants = [
                g for g in grants
                if needle in g.display_name.lower()
                or needle in g.unit.lower()
                or (g.vehicle_plate and needle in g.vehicle_plate.lower())
            ]
        return grants

    def resolve_host(self, actor: ActorIdentity, grant_id: str) -> AccessGrant:
        """Fetch a grant of the actor's tenant (e.g. the host of an invitation)."""
        grant = self._store.get(grant_id)
        if grant is None or grant.tenant_id != actor.tenant_id:
            raise GrantNotFound(grant_id)
        return grant

    # ── Mutations ───────────────────────────────────────────────

    async def create(
        self,
        actor: ActorIdentity,
        display_name: str,
        unit: Optional[str] = None,
        kind: GrantKind = GrantKind.OCCUPANT,
        vehicle_plate: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> AccessGrant:
        self._require_manager(actor)
        if actor.role.is_unit_scoped:
            unit = actor.unit
        display_name = (display_name or "").strip()
        unit = (unit or "").strip()
        if not display_name or not unit:
            raise InvalidGrant("display_name and unit are required")

        grant = AccessGrant(
            tenant_id=actor.tenant_id,
            display_name=display_name,
            unit=unit,
            kind=kind,
            status=GrantStatus.ACTIVE,
            vehicle_plate=vehicle_plate or None,
            expires_at=expires_at,
        )
        await self._store.upsert(grant)
        logger.info(
            "Grant created for unit %s by %s", unit, actor.user_id,
            extra={"tenant_id": actor.tenant_id, "grant_id": grant.id},
        )
        return grant

    async def update(self, actor: ActorIdentity, grant_id: str, **changes: Any) -> AccessGrant:
        """Edit name/unit/kind/status/plate. Occupants cannot move a grant to another unit."""
        grant = self._editable(actor, grant_id)
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise InvalidGrant(f"Fields not editable: {', '.join(sorted(unknown))}")
        if "unit" in changes and actor.role is not Role.OWNER_ADMIN and changes["unit"] != grant.unit:
            raise PermissionDenied("Only the owner-admin can move a grant to another unit")

        merged: Dict[str, Any] = grant.model_dump()
        merged.update(changes)
        if not str(merged["display_name"]).strip() or not str(merged["unit"]).strip():
            raise InvalidGrant("display_name and unit are required")
        updated = AccessGrant.model_validate(merged)
        await self._store.upsert(updated)
        return updated

    async def extend(
        self,
        actor: ActorIdentity,
        grant_id: str,
        expires_at: Optional[datetime],
    ) -> AccessGrant:
        """Set a new expiry, or clear it with None (grant never auto-expires)."""
        grant = self._editable(actor, grant_id)
        merged = grant.model_dump()
        merged["expires_at"] = expires_at
        updated = AccessGrant.model_validate(merged)
        await self._store.upsert(updated)
        logger.info(
            "Grant expiry set to %s", expires_at.isoformat() if expires_at else "never",
            extra={"tenant_id": actor.tenant_id, "grant_id": grant_id},
        )
        return updated

    async def delete(self, actor: ActorIdentity, grant_id: str) -> None:
        self._editable(actor, grant_id)
        if not await self._store.remove(grant_id):
            raise GrantNotFound(grant_id)
        logger.info(
            "Grant deleted by %s", actor.user_id,
            extra={"tenant_id": actor.tenant_id, "grant_id": grant_id},
        )

    # ── Permission helpers ──────────────────────────────────────

    @staticmethod
    def _require_manager(actor: ActorIdentity) -> None:
        if actor.role not in (Role.OWNER_ADMIN, Role.OCCUPANT):
            raise PermissionDenied(f"Role {actor.role.value} has read-only access")

    def _editable(self, actor: ActorIdentity, grant_id: str) -> AccessGrant:
        self._require_manager(actor)
        grant = self.resolve_host(actor, grant_id)
        if not actor.owns_unit(grant.unit):
            raise PermissionDenied(f"Grant {grant_id} belongs to another unit")
        return grant
