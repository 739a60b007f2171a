# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Redis Client — shared async connection for the Redis grant backend.

Only used when STORE_BACKEND=redis. The grant collection is rewritten in one
MULTI/EXEC per store write, so a handful of pooled connections is plenty.
"""

from __future__ import annotations

import logging
from typing import Optional

import redis.asyncio as aioredis
from redis.backoff import ExponentialBackoff
from redis.exceptions import BusyLoadingError, ConnectionError, RedisError, TimeoutError
from redis.retry import Retry

from condoguard.core.config import settings

logger = logging.getLogger("condoguard.redis")

_client: Optional[aioredis.Redis] = None


def build_redis_client(url: Optional[str] = None) -> aioredis.Redis:
    """Create a client with reconnect-on-error; limits come from GuardSettings."""
    return aioredis.from_url(
        url or settings.REDIS_URL,
        decode_responses=True,
        max_connections=settings.REDIS_MAX_CONNECTIONS,
        health_check_interval=15,
        retry=Retry(ExponentialBackoff(cap=2, base=0.1), retries=3),
        retry_on_error=[ConnectionError, TimeoutError, BusyLoadingError, OSError],
        socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
    )


async def get_redis_pool() -> aioredis.Redis:
    """Return the process-wide client, creating it on first use."""
    global _client
    if _client is None:
        _client = build_redis_client()
        logger.info("Redis client created for grant persistence")
    return _client


async def redis_status() -> str:
    """'not_configured' | 'connected' | 'unavailable', for the health check."""
    if _client is None:
        return "not_configured"
    try:
        await _client.ping()
    except (RedisError, OSError) as exc:
        logger.warning("Redis ping failed: %s", exc)
        return "unavailable"
    return "connected"


async def close_redis_pool() -> None:
    global _client
    if _client is not None:
        client, _client = _client, None
        await client.aclose()


def inject_redis_for_test(redis_instance: Optional[aioredis.Redis]) -> None:
    """Swap in a fake client (or None to forget it). Tests only."""
    global _client
    _client = redis_instance
