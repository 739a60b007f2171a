# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Credential Validator — the checkpoint decision.

Checks run in a fixed order and stop at the first failure:
  1. structure   (decode)            -> Rejected(MALFORMED_PAYLOAD)
  2. tenant lock (before expiry, so a foreign code reveals nothing else)
                                     -> Rejected(TENANT_MISMATCH)
  3. expiry      (accept iff now < expires_at)
                                     -> Rejected(EXPIRED)
  4.                                 -> Accepted(credential)

Validation has no side effects: a credential is not consumed by a scan and
stays valid for repeated use until it expires.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from condoguard.core.errors import MalformedPayloadError
from condoguard.core.metrics import guard_metrics
from condoguard.credentials.codec import CredentialCodec
from condoguard.credentials.outcomes import Accepted, Rejected, ValidationOutcome

logger = logging.getLogger("condoguard.validator")


class CredentialValidator:
    def __init__(self, codec: Optional[CredentialCodec] = None) -> None:
        self._codec = codec or CredentialCodec()

    def validate(self, raw: str, validator_tenant: str, now: datetime) -> ValidationOutcome:
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        outcome = self._decide(raw, validator_tenant, now)
        guard_metrics.record_validation(outcome.label)
        if outcome.accepted:
            logger.info(
                "Credential accepted for unit %s",
                outcome.credential.host_unit,
                extra={
                    "tenant_id": validator_tenant,
                    "credential_id": outcome.credential.credential_id,
                },
            )
        else:
            logger.info(
                "Credential rejected: %s", outcome.label,
                extra={"tenant_id": validator_tenant},
            )
        return outcome

    def _decide(self, raw: str, validator_tenant: str, now: datetime) -> ValidationOutcome:
        try:
            credential = self._codec.decode(raw)
        except MalformedPayloadError as exc:
            return Rejected.malformed(exc.detail)

        if credential.tenant_id != validator_tenant:
            return Rejected.tenant_mismatch(credential.tenant_id)

        if credential.is_expired(now):
            return Rejected.expired(credential.expires_at)

        return Accepted(credential)
