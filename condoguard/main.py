# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
CondoGuard Application Entry Point.

FastAPI app with lifespan, middleware and all API routers.
The grant store backend is picked from STORE_BACKEND (memory | redis).

Entry point: uvicorn condoguard.main:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from condoguard.core.config import settings
from condoguard.core.context import init_guard_context
from condoguard.core.errors import CondoGuardError
from condoguard.core.logging import setup_logging
from condoguard.kernel.redis_client import get_redis_pool, close_redis_pool
from condoguard.storage.persistence import InMemoryGrantPersistence, RedisGrantPersistence
from condoguard.api.errors import APIError, api_error_handler, domain_error_handler
from condoguard.api.middleware import TraceMiddleware
from condoguard.api.grants import router as grants_router
from condoguard.api.credentials import router as credentials_router
from condoguard.api.observability import router as observability_router

logger = logging.getLogger("condoguard.main")


async def _build_persistence():
    if settings.STORE_BACKEND == "redis":
        return RedisGrantPersistence(await get_redis_pool())
    if settings.STORE_BACKEND != "memory":
        logger.warning("Unknown STORE_BACKEND '%s', using memory", settings.STORE_BACKEND)
    return InMemoryGrantPersistence()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup/shutdown of the access core."""
    # Startup
    setup_logging(settings.LOG_LEVEL)
    ctx = init_guard_context(await _build_persistence())
    await ctx.open()
    logger.info("[CondoGuard] Service ready (backend=%s)", settings.STORE_BACKEND)
    yield
    # Shutdown
    await ctx.close()
    await close_redis_pool()
    logger.info("[CondoGuard] Shutdown complete")


app = FastAPI(
    title="CondoGuard",
    description="Condominium visitor access credentials",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(TraceMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Error Handlers ──────────────────────────────────────────
app.add_exception_handler(APIError, api_error_handler)
app.add_exception_handler(CondoGuardError, domain_error_handler)

# ── Routes ──────────────────────────────────────────────────
app.include_router(grants_router, prefix="/api")
app.include_router(credentials_router, prefix="/api")
app.include_router(observability_router)
