# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
API Error Handling — Unified error structure.

Every failure leaves the service as {code, message, trace_id, details}.
Domain errors from the access core are mapped onto HTTP status codes here.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from condoguard.core.errors import (
    CondoGuardError,
    GrantNotFound,
    InvalidGrant,
    InvalidQuantity,
    PermissionDenied,
    PersistenceError,
    TenantImmutableError,
)

_STATUS_BY_ERROR = {
    PermissionDenied: 403,
    GrantNotFound: 404,
    InvalidQuantity: 422,
    InvalidGrant: 422,
    TenantImmutableError: 409,
    PersistenceError: 503,
}


class APIError(Exception):
    """Base API error with structured response."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
        trace_id: Optional[str] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.trace_id = trace_id or str(uuid.uuid4())
        super().__init__(message)


class RoleNotAllowedError(APIError):
    def __init__(self, role: str, action: str, trace_id: str = None):
        super().__init__(
            code="ROLE_NOT_ALLOWED",
            message=f"Role '{role}' cannot {action}",
            status_code=403,
            trace_id=trace_id,
        )


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", None) or str(uuid.uuid4())


def _body(code: str, message: str, trace_id: str, details: Dict[str, Any]) -> Dict[str, Any]:
    return {"code": code, "message": message, "trace_id": trace_id, "details": details}


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Global exception handler for APIError."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_body(exc.code, exc.message, exc.trace_id, exc.details),
    )


async def domain_error_handler(request: Request, exc: CondoGuardError) -> JSONResponse:
    """Global exception handler for access-core errors."""
    status_code = 400
    for error_type, status in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            status_code = status
            break
    details: Dict[str, Any] = {}
    if isinstance(exc, InvalidQuantity):
        details = {"count": exc.count, "max": exc.maximum}
    return JSONResponse(
        status_code=status_code,
        content=_body(exc.code, str(exc), _trace_id(request), details),
    )
