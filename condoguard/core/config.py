# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
CondoGuard Configuration — Environment-driven settings.

All configuration is loaded from environment variables (or .env file).
"""

from __future__ import annotations

from pydantic_settings import BaseSettings
from pydantic import Field


class GuardSettings(BaseSettings):
    """Platform-wide configuration loaded from environment."""

    # --- Redis ---
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (grant persistence)",
    )
    STORE_BACKEND: str = Field(
        default="memory",
        description="Grant persistence backend: memory | redis",
    )
    REDIS_MAX_CONNECTIONS: int = Field(default=10, ge=1)
    REDIS_SOCKET_TIMEOUT: float = Field(
        default=5.0,
        gt=0,
        description="Connect/read timeout in seconds for the grant backend",
    )

    # --- Credentials ---
    CREDENTIAL_DEFAULT_TTL: int = Field(
        default=24 * 3600,
        description="Credential lifetime in seconds when no expiry is given (24h)",
    )
    CREDENTIAL_MAX_BATCH: int = Field(
        default=20,
        ge=1,
        description="Max credentials minted by a single group invitation",
    )
    DEFAULT_VISITOR_LABEL: str = Field(
        default="Invitado",
        min_length=1,
        description="Visitor label printed on credentials without an explicit name",
    )

    # --- Expiration sweep ---
    SWEEP_INTERVAL: float = Field(
        default=10.0,
        gt=0,
        description="Seconds between expiration sweeps",
    )
    SWEEP_MAX_ATTEMPTS: int = Field(
        default=3,
        ge=1,
        description="CAS attempts per sweep before giving up until the next tick",
    )

    # --- Platform ---
    LOG_LEVEL: str = Field(default="INFO")
    GUARD_ENV: str = Field(
        default="dev",
        description="Environment: dev | prod",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


# Global singleton
settings = GuardSettings()
