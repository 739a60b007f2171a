# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
CondoGuard Schema — AccessGrant records and visitor Credentials.

Design decisions:
  - Mandatory `tenant_id` on both models: the only isolation boundary.
  - Credentials are frozen and serialize with camelCase keys, which is the
    transport format rendered into QR codes.
  - All timestamps are normalized to timezone-aware UTC; naive input is
    taken to already be UTC.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from condoguard.core.tenant import Role


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    try:
        return value.astimezone(timezone.utc)
    except OverflowError:
        # e.g. 9999-12-31T23:59:59-01:00 has no UTC equivalent
        raise ValueError("timestamp out of range")


def _reject_numeric_timestamp(value: Any) -> Any:
    # pydantic would otherwise read bare numbers as unix seconds
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        raise ValueError("timestamp must be an ISO-8601 string")
    return value


class GrantKind(str, Enum):
    OCCUPANT = "Occupant"
    FAMILY_MEMBER = "FamilyMember"
    VISITOR = "Visitor"
    DELIVERY_AGENT = "DeliveryAgent"


class GrantStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class AccessGrant(BaseModel):
    """
    Authorization for a named person/vehicle to be present in a unit.

    `expires_at` is optional: a grant without it never expires on its own.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        min_length=1,
        description="Unique, immutable grant identifier",
    )
    tenant_id: str = Field(
        ...,
        min_length=1,
        description="[CRITICAL] Owning condominium, fixed at creation",
    )
    display_name: str
    unit: str
    kind: GrantKind = GrantKind.OCCUPANT
    status: GrantStatus = GrantStatus.ACTIVE
    vehicle_plate: Optional[str] = None
    expires_at: Optional[datetime] = None

    @field_validator("expires_at", mode="before")
    @classmethod
    def _expiry_is_iso(cls, v: Any) -> Any:
        return _reject_numeric_timestamp(v)

    @field_validator("expires_at")
    @classmethod
    def _expiry_is_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v) if v is not None else None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str) -> AccessGrant:
        return cls.model_validate_json(data)


class IssuedBy(BaseModel):
    """Snapshot of the actor who minted a credential."""

    model_config = ConfigDict(frozen=True)

    name: str
    role: Role
    id: str


class Credential(BaseModel):
    """
    Visitor invitation rendered into a QR code.

    Never stored centrally: it only exists as its encoded string until a
    checkpoint decodes it. There is no signature, so anyone able to build
    the JSON can mint one.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    credential_id: str = Field(
        ...,
        description="Unique per issued code, even inside one group batch",
    )
    tenant_id: str = Field(
        ...,
        min_length=1,
        description="[CRITICAL] Domain lock copied from the issuer",
    )
    host_display_name: str
    host_unit: str
    visitor_label: str = Field(..., min_length=1)
    issued_by: IssuedBy
    expires_at: datetime
    issued_at: int = Field(..., description="Issuance time, epoch milliseconds")

    @field_validator("expires_at", mode="before")
    @classmethod
    def _expiry_is_iso(cls, v: Any) -> Any:
        return _reject_numeric_timestamp(v)

    @field_validator("expires_at")
    @classmethod
    def _expiry_is_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def __repr__(self) -> str:
        return (
            f"Credential(id={self.credential_id!r}, tenant={self.tenant_id!r}, "
            f"unit={self.host_unit!r}, expires_at={self.expires_at.isoformat()})"
        )
