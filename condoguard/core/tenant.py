# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Actor Identity — Multi-tenancy support.

Every operation in CondoGuard is scoped to a tenant_id (one condominium).
ActorIdentity carries the caller's tenant, role and unit through the call chain.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Role(str, Enum):
    """User roles. Values are the single-letter codes used on the wire."""

    OWNER_ADMIN = "X"   # condominium owner, full control
    CHECKPOINT = "A"    # front desk / security, validates credentials
    OCCUPANT = "B"      # resident owner, manages one unit

    @property
    def can_issue(self) -> bool:
        return self in (Role.OWNER_ADMIN, Role.OCCUPANT)

    @property
    def can_validate(self) -> bool:
        return self in (Role.OWNER_ADMIN, Role.CHECKPOINT)

    @property
    def is_unit_scoped(self) -> bool:
        return self is Role.OCCUPANT


@dataclass(frozen=True)
class ActorIdentity:
    """Immutable caller identity for request-scoped operations."""

    tenant_id: str
    user_id: str = ""
    name: str = ""
    role: Role = Role.CHECKPOINT
    unit: Optional[str] = None

    def __post_init__(self):
        if not self.tenant_id:
            raise ValueError("tenant_id must not be empty")
        if self.role.is_unit_scoped and not self.unit:
            raise ValueError("unit is required for occupant actors")

    def owns_unit(self, unit: str) -> bool:
        """True if this actor may manage records of the given unit."""
        if self.role is Role.OWNER_ADMIN:
            return True
        return self.role.is_unit_scoped and self.unit == unit

    def __repr__(self) -> str:
        return (
            f"ActorIdentity(tenant={self.tenant_id!r}, user={self.user_id!r}, "
            f"role={self.role.value!r})"
        )
