# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Grant Persistence — collaborators behind AccessGrantStore.

The store only needs "read all" and "write all". Durability is the
collaborator's concern: the in-memory backend keeps nothing across restarts,
the Redis backend rewrites the whole hash inside one MULTI/EXEC.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Sequence

import redis.asyncio as aioredis
from pydantic import ValidationError

from condoguard.kernel.namespace import get_grant_field, get_grants_key, get_grants_marker_key
from condoguard.protocols.schema import AccessGrant

logger = logging.getLogger("condoguard.persistence")


class GrantPersistence(Protocol):
    async def load_all(self) -> Optional[List[AccessGrant]]:
        """Return the persisted collection, or None if nothing was ever saved."""
        ...

    async def save_all(self, grants: Sequence[AccessGrant]) -> None:
        ...


class InMemoryGrantPersistence:
    """In-process persistence (dev mode and tests)."""

    def __init__(self, grants: Optional[Sequence[AccessGrant]] = None):
        self._grants: Optional[List[AccessGrant]] = list(grants) if grants is not None else None
        self.save_count = 0

    async def load_all(self) -> Optional[List[AccessGrant]]:
        if self._grants is None:
            return None
        return list(self._grants)

    async def save_all(self, grants: Sequence[AccessGrant]) -> None:
        self._grants = list(grants)
        self.save_count += 1


class RedisGrantPersistence:
    """
    Stores every grant as one field of a single Redis hash.

    Hash:  condoguard:grants
    Field: {tenant_id}:{grant_id}  ->  AccessGrant JSON
    """

    def __init__(self, redis: aioredis.Redis) -> None:
        self._redis = redis

    async def load_all(self) -> Optional[List[AccessGrant]]:
        if not await self._redis.exists(get_grants_marker_key()):
            return None
        raw = await self._redis.hgetall(get_grants_key())
        grants: List[AccessGrant] = []
        for field, value in raw.items():
            try:
                grants.append(AccessGrant.from_json(value))
            except ValidationError as exc:
                logger.warning("Skipping unreadable grant %s: %s", field, exc)
        grants.sort(key=lambda g: (g.tenant_id, g.unit, g.id))
        return grants

    async def save_all(self, grants: Sequence[AccessGrant]) -> None:
        key = get_grants_key()
        mapping = {get_grant_field(g.tenant_id, g.id): g.to_json() for g in grants}
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.delete(key)
            if mapping:
                pipe.hset(key, mapping=mapping)
            pipe.set(get_grants_marker_key(), "1")
            await pipe.execute()
