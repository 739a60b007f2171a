# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Domain Errors — Recoverable failures raised by the access core.

None of these are fatal to the process; the API layer maps each one
onto a structured error response and the UI can always reset.
"""

from __future__ import annotations

from typing import Optional


class CondoGuardError(Exception):
    """Base class for all domain errors."""

    code = "CONDOGUARD_ERROR"


class PermissionDenied(CondoGuardError):
    """Actor is not allowed to act on the target tenant/unit."""

    code = "PERMISSION_DENIED"


class InvalidQuantity(CondoGuardError):
    """Requested credential batch size is out of bounds."""

    code = "INVALID_QUANTITY"

    def __init__(self, count: int, maximum: int):
        self.count = count
        self.maximum = maximum
        super().__init__(f"Credential count must be between 1 and {maximum}, got {count}")


class GrantNotFound(CondoGuardError):
    code = "GRANT_NOT_FOUND"

    def __init__(self, grant_id: str):
        self.grant_id = grant_id
        super().__init__(f"Access grant '{grant_id}' not found")


class InvalidGrant(CondoGuardError):
    """Grant payload is incomplete (e.g. blank name or unit)."""

    code = "INVALID_GRANT"


class TenantImmutableError(CondoGuardError):
    """An upsert tried to move an existing grant to another tenant."""

    code = "TENANT_IMMUTABLE"

    def __init__(self, grant_id: str, current: str, attempted: str):
        self.grant_id = grant_id
        super().__init__(
            f"Grant '{grant_id}' belongs to tenant '{current}', "
            f"cannot move it to '{attempted}'"
        )


class PersistenceError(CondoGuardError):
    """The persistence collaborator failed to write the grant collection."""

    code = "PERSISTENCE_ERROR"


class MalformedPayloadError(CondoGuardError):
    """A scanned string does not decode into a complete credential."""

    code = "MALFORMED_PAYLOAD"

    def __init__(self, detail: str, raw: Optional[str] = None):
        self.detail = detail
        self.raw = raw
        super().__init__(f"Malformed credential payload: {detail}")


class AcquisitionFailedError(CondoGuardError):
    """The frame source (camera) could not be opened."""

    code = "ACQUISITION_FAILED"
