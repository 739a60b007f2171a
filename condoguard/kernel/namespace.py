# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Namespace Helper — Redis key layout for persisted grants.

The whole grant collection lives in one Redis hash so it can be rewritten
atomically; each field is namespaced {tenant_id}:{grant_id}.
"""

from __future__ import annotations

KEY_PREFIX = "condoguard"


def get_grants_key() -> str:
    """
    Hash holding every persisted access grant.

    Example:
        get_grants_key() -> "condoguard:grants"
    """
    return f"{KEY_PREFIX}:grants"


def get_grant_field(tenant_id: str, grant_id: str) -> str:
    """
    Build the tenant-scoped hash field for one grant.

    Example:
        get_grant_field("t1", "r1") -> "t1:r1"
    """
    return f"{tenant_id}:{grant_id}"


def get_grants_marker_key() -> str:
    """
    Set once the collection has been written, even if it is now empty.

    Example:
        get_grants_marker_key() -> "condoguard:grants:initialized"
    """
    return f"{KEY_PREFIX}:grants:initialized"
