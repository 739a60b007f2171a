# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Credential Codec — Credential <-> QR payload text.

The payload is compact JSON with camelCase keys. Decoding is strict on
structure: every key must be present, `tenantId` and `visitorLabel` must be
non-empty and `expiresAt` must parse as an ISO-8601 timestamp. Any failure
surfaces as MalformedPayloadError and nothing else.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from condoguard.core.errors import MalformedPayloadError
from condoguard.protocols.schema import Credential

logger = logging.getLogger("condoguard.codec")

REQUIRED_KEYS = (
    "credentialId",
    "tenantId",
    "hostDisplayName",
    "hostUnit",
    "visitorLabel",
    "issuedBy",
    "expiresAt",
    "issuedAt",
)
REQUIRED_ISSUER_KEYS = ("name", "role", "id")


class CredentialCodec:
    """Stateless encoder/decoder for the credential transport format."""

    def encode(self, credential: Credential) -> str:
        return credential.model_dump_json(by_alias=True)

    def decode(self, raw: Any) -> Credential:
        if not isinstance(raw, str):
            raise MalformedPayloadError(f"expected text, got {type(raw).__name__}")
        try:
            data = json.loads(raw)
        except (ValueError, RecursionError) as exc:
            raise MalformedPayloadError("not JSON", raw=raw) from exc
        if not isinstance(data, dict):
            raise MalformedPayloadError("payload is not an object", raw=raw)

        missing = [key for key in REQUIRED_KEYS if key not in data]
        if missing:
            raise MalformedPayloadError(f"missing keys: {', '.join(missing)}", raw=raw)
        issued_by = data["issuedBy"]
        if not isinstance(issued_by, dict) or any(k not in issued_by for k in REQUIRED_ISSUER_KEYS):
            raise MalformedPayloadError("issuedBy must carry name, role and id", raw=raw)

        try:
            return Credential.model_validate(data)
        except ValidationError as exc:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
            logger.debug("Credential rejected by schema: %s", exc)
            raise MalformedPayloadError(f"invalid fields: {fields}", raw=raw) from exc
        except OverflowError as exc:
            raise MalformedPayloadError("timestamp out of range", raw=raw) from exc
