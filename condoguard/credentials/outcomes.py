# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Validation outcomes — the tagged result of checking a scanned credential.

A checkpoint decision is either Accepted(credential) or Rejected(reason);
there is no partial state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from condoguard.protocols.schema import Credential


class RejectReason(str, Enum):
    MALFORMED_PAYLOAD = "malformed_payload"
    TENANT_MISMATCH = "tenant_mismatch"
    EXPIRED = "expired"
    # Raised by ScanSession only, never by the validator
    ACQUISITION_FAILED = "acquisition_failed"
    FRAME_SOURCE_FAILED = "frame_source_failed"


@dataclass(frozen=True)
class Accepted:
    credential: Credential

    accepted = True
    label = "accepted"

    @property
    def message(self) -> str:
        return (
            f"Access granted: {self.credential.visitor_label} visiting "
            f"{self.credential.host_display_name} ({self.credential.host_unit})"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accepted": True,
            "message": self.message,
            "credential": self.credential.model_dump(mode="json", by_alias=True),
        }


@dataclass(frozen=True)
class Rejected:
    reason: RejectReason
    found_tenant: Optional[str] = None
    expires_at: Optional[datetime] = None
    detail: str = field(default="", compare=False)

    accepted = False

    @property
    def label(self) -> str:
        return self.reason.value

    @classmethod
    def malformed(cls, detail: str = "") -> Rejected:
        return cls(RejectReason.MALFORMED_PAYLOAD, detail=detail)

    @classmethod
    def tenant_mismatch(cls, found_tenant: str) -> Rejected:
        return cls(RejectReason.TENANT_MISMATCH, found_tenant=found_tenant)

    @classmethod
    def expired(cls, expires_at: datetime) -> Rejected:
        return cls(RejectReason.EXPIRED, expires_at=expires_at)

    @classmethod
    def acquisition_failed(cls, detail: str = "") -> Rejected:
        return cls(RejectReason.ACQUISITION_FAILED, detail=detail)

    @classmethod
    def frame_source_failed(cls, detail: str = "") -> Rejected:
        return cls(RejectReason.FRAME_SOURCE_FAILED, detail=detail)

    @property
    def message(self) -> str:
        if self.reason is RejectReason.TENANT_MISMATCH:
            return f"Credential belongs to another condominium (tenant {self.found_tenant})"
        if self.reason is RejectReason.EXPIRED:
            return f"Credential expired at {self.expires_at.isoformat()}"
        if self.reason is RejectReason.ACQUISITION_FAILED:
            return "Camera could not be opened, check permissions"
        if self.reason is RejectReason.FRAME_SOURCE_FAILED:
            return "Camera stopped delivering frames"
        return "Scanned code is not a CondoGuard credential"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "accepted": False,
            "reason": self.reason.value,
            "message": self.message,
        }
        if self.found_tenant is not None:
            data["found_tenant"] = self.found_tenant
        if self.expires_at is not None:
            data["expires_at"] = self.expires_at.isoformat()
        return data


ValidationOutcome = Union[Accepted, Rejected]
