# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Shared test fixtures for all CondoGuard tests.
"""

from datetime import datetime, timezone

import pytest
import fakeredis.aioredis

from condoguard.core.metrics import guard_metrics
from condoguard.core.tenant import ActorIdentity, Role
from condoguard.kernel.clock import FixedClock
from condoguard.kernel.redis_client import inject_redis_for_test
from condoguard.protocols.schema import AccessGrant

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clean_metrics():
    guard_metrics.reset()
    yield
    guard_metrics.reset()


@pytest.fixture
def mock_redis():
    """Provide a FakeRedis async instance wired into the pool factory."""
    r = fakeredis.aioredis.FakeRedis(decode_responses=True)
    inject_redis_for_test(r)
    yield r
    inject_redis_for_test(None)


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned at T0 (2026-03-01 12:00 UTC)."""
    return FixedClock(T0)


@pytest.fixture
def owner_admin() -> ActorIdentity:
    return ActorIdentity(tenant_id="t1", user_id="u-x", name="Marta", role=Role.OWNER_ADMIN)


@pytest.fixture
def occupant() -> ActorIdentity:
    return ActorIdentity(tenant_id="t1", user_id="u-b", name="Luis", role=Role.OCCUPANT, unit="101")


@pytest.fixture
def checkpoint() -> ActorIdentity:
    return ActorIdentity(tenant_id="t1", user_id="u-a", name="Porteria", role=Role.CHECKPOINT)


@pytest.fixture
def host_grant() -> AccessGrant:
    return AccessGrant(id="r1", tenant_id="t1", display_name="Luis Perez", unit="101")
