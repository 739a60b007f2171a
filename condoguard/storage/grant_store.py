# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
AccessGrantStore — the shared collection of residency/access records.

Concurrency model (single event loop):
  - Readers get an immutable snapshot tuple; a write swaps in a brand new
    tuple, so no reader ever observes a half-applied change.
  - Writers (upsert / remove / replace_all) queue on one asyncio.Lock and are
    applied one at a time in call order.
  - replace_all accepts an expected version, which turns it into a
    compare-and-swap: the ExpirationSweeper computes its retained set from a
    snapshot and only installs it if nobody wrote in between.

The store does not filter by tenant on its own behalf; list(tenant_id) is a
convenience, and callers remain responsible for scoping every read.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from condoguard.core.errors import PersistenceError, TenantImmutableError
from condoguard.core.metrics import guard_metrics
from condoguard.protocols.schema import AccessGrant
from condoguard.storage.persistence import GrantPersistence, InMemoryGrantPersistence

logger = logging.getLogger("condoguard.grant_store")


@dataclass(frozen=True)
class StoreSnapshot:
    version: int
    grants: Tuple[AccessGrant, ...]


class AccessGrantStore:
    def __init__(
        self,
        persistence: Optional[GrantPersistence] = None,
        seed: Optional[Iterable[AccessGrant]] = None,
    ) -> None:
        """
        Args:
            persistence: Read-all/write-all collaborator. Defaults to in-memory.
            seed: Initial collection, kept when the collaborator has never
                  persisted anything.
        """
        self._persistence = persistence or InMemoryGrantPersistence()
        self._snapshot = StoreSnapshot(0, _unique(seed or ()))
        self._lock = asyncio.Lock()
        self._dirty = False

    # ── Lifecycle ───────────────────────────────────────────────

    async def open(self) -> None:
        """Load the persisted collection (or keep the seed if there is none)."""
        loaded = await self._persistence.load_all()
        async with self._lock:
            if loaded is not None:
                self._snapshot = StoreSnapshot(self._snapshot.version + 1, _unique(loaded))
            guard_metrics.set_gauge("grants_total", len(self._snapshot.grants))
        logger.info(
            "Grant store opened with %d grants (%s)",
            len(self._snapshot.grants), "persisted" if loaded is not None else "seed",
        )

    async def flush(self) -> None:
        """Write the current collection. Raises PersistenceError on failure."""
        async with self._lock:
            try:
                await self._persistence.save_all(self._snapshot.grants)
            except Exception as exc:
                self._dirty = True
                raise PersistenceError(f"Failed to persist grants: {exc}") from exc
            self._dirty = False

    async def close(self) -> None:
        if self._dirty:
            try:
                await self.flush()
            except PersistenceError as exc:
                logger.error("Grant store closed with unsaved changes: %s", exc)
        logger.info("Grant store closed at version %d", self._snapshot.version)

    # ── Reads ───────────────────────────────────────────────────

    @property
    def version(self) -> int:
        return self._snapshot.version

    @property
    def dirty(self) -> bool:
        """True when the last write could not be persisted."""
        return self._dirty

    def snapshot(self) -> StoreSnapshot:
        return self._snapshot

    def all(self) -> Tuple[AccessGrant, ...]:
        return self._snapshot.grants

    def list(self, tenant_id: str) -> List[AccessGrant]:
        return [g for g in self._snapshot.grants if g.tenant_id == tenant_id]

    def get(self, grant_id: str) -> Optional[AccessGrant]:
        for grant in self._snapshot.grants:
            if grant.id == grant_id:
                return grant
        return None

    # ── Writes (serialized) ─────────────────────────────────────

    async def upsert(self, grant: AccessGrant) -> AccessGrant:
        """Insert or replace by id. A grant can never change tenant."""
        async with self._lock:
            current = self._snapshot.grants
            for index, existing in enumerate(current):
                if existing.id == grant.id:
                    if existing.tenant_id != grant.tenant_id:
                        raise TenantImmutableError(grant.id, existing.tenant_id, grant.tenant_id)
                    updated = current[:index] + (grant,) + current[index + 1:]
                    break
            else:
                updated = current + (grant,)
            await self._commit(updated)
        return grant

    async def remove(self, grant_id: str) -> bool:
        """Delete by id. Returns False (and writes nothing) if absent."""
        async with self._lock:
            current = self._snapshot.grants
            kept = tuple(g for g in current if g.id != grant_id)
            if len(kept) == len(current):
                return False
            await self._commit(kept)
        return True

    async def replace_all(
        self,
        grants: Iterable[AccessGrant],
        expected_version: Optional[int] = None,
    ) -> bool:
        """
        Swap in a whole new collection in one step.

        With `expected_version`, the swap only happens if the store is still
        at that version; otherwise nothing changes and False is returned.
        """
        replacement = _unique(grants)
        async with self._lock:
            if expected_version is not None and expected_version != self._snapshot.version:
                logger.debug(
                    "replace_all conflict: expected v%d, store at v%d",
                    expected_version, self._snapshot.version,
                )
                return False
            await self._commit(replacement)
        return True

    async def _commit(self, grants: Tuple[AccessGrant, ...]) -> None:
        # Caller holds self._lock
        self._snapshot = StoreSnapshot(self._snapshot.version + 1, grants)
        guard_metrics.set_gauge("grants_total", len(grants))
        try:
            await self._persistence.save_all(grants)
            self._dirty = False
        except Exception as exc:
            self._dirty = True
            logger.warning(
                "Grant store v%d not persisted, will retry: %s",
                self._snapshot.version, exc, exc_info=True,
            )


def _unique(grants: Iterable[AccessGrant]) -> Tuple[AccessGrant, ...]:
    result = tuple(grants)
    ids = [g.id for g in result]
    if len(set(ids)) != len(ids):
        raise ValueError("Grant collection contains duplicate ids")
    return result
