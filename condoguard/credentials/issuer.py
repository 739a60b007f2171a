# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Credential Issuer — mints visitor invitations for a host grant.

Issuance is pure apart from id generation: nothing is written to the
grant store and no record of the minted credentials is kept.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from condoguard.core.config import settings
from condoguard.core.errors import InvalidQuantity, PermissionDenied
from condoguard.core.metrics import guard_metrics
from condoguard.core.tenant import ActorIdentity
from condoguard.kernel.clock import Clock, SystemClock
from condoguard.protocols.schema import AccessGrant, Credential, IssuedBy

logger = logging.getLogger("condoguard.issuer")


class CredentialIssuer:
    """
    Builds credentials for a named host grant.

    Policy:
      - Only owner-admins and occupants may issue.
      - The host grant must live in the issuer's tenant; occupants may only
        invite on behalf of their own unit.
      - A group invitation yields `count` codes, 1 <= count <= max_batch.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        default_ttl: Optional[timedelta] = None,
        max_batch: Optional[int] = None,
        default_visitor_label: Optional[str] = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._default_ttl = default_ttl or timedelta(seconds=settings.CREDENTIAL_DEFAULT_TTL)
        self._max_batch = max_batch or settings.CREDENTIAL_MAX_BATCH
        self._default_label = default_visitor_label or settings.DEFAULT_VISITOR_LABEL

    @property
    def max_batch(self) -> int:
        return self._max_batch

    def check_permission(self, host_grant: AccessGrant, issuer: ActorIdentity) -> None:
        """Raise PermissionDenied unless `issuer` may invite on behalf of `host_grant`."""
        if not issuer.role.can_issue:
            raise PermissionDenied(f"Role {issuer.role.value} cannot issue credentials")
        if host_grant.tenant_id != issuer.tenant_id:
            raise PermissionDenied("Host grant belongs to another tenant")
        if issuer.role.is_unit_scoped and host_grant.unit != issuer.unit:
            raise PermissionDenied(f"Occupants may only invite for unit {issuer.unit}")

    def issue(
        self,
        host_grant: AccessGrant,
        issuer: ActorIdentity,
        expires_at: Optional[datetime] = None,
        count: int = 1,
        visitor_label: Optional[str] = None,
    ) -> List[Credential]:
        """
        Mint `count` credentials for `host_grant`.

        All codes share tenant, host, unit, expiry and issuance time; only
        `credential_id` differs. Expiry defaults to now + default TTL.
        """
        self.check_permission(host_grant, issuer)
        if isinstance(count, bool) or not isinstance(count, int) or not 1 <= count <= self._max_batch:
            raise InvalidQuantity(count, self._max_batch)

        now = self._clock.now()
        if expires_at is None:
            expires_at = now + self._default_ttl
        elif expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        issued_at = int(now.timestamp() * 1000)
        issued_by = IssuedBy(name=issuer.name, role=issuer.role, id=issuer.user_id)
        label = visitor_label or self._default_label

        credentials = [
            Credential(
                credential_id=str(uuid.uuid4()),
                tenant_id=issuer.tenant_id,
                host_display_name=host_grant.display_name,
                host_unit=host_grant.unit,
                visitor_label=label,
                issued_by=issued_by,
                expires_at=expires_at,
                issued_at=issued_at,
            )
            for _ in range(count)
        ]

        guard_metrics.inc("credentials_issued", count)
        logger.info(
            "Issued %d credential(s) for grant %s (unit %s) expiring %s",
            count, host_grant.id, host_grant.unit, expires_at.isoformat(),
            extra={"tenant_id": issuer.tenant_id, "grant_id": host_grant.id},
        )
        return credentials
