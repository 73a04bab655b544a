"""
Route guard: every path is protected unless it is on the public list.

The guard only checks that a valid access token is present. Routes still
declare `Depends(get_current_user)` to load the user row.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from . import dependencies, security

logger = logging.getLogger(__name__)

LOGIN_URL = "/auth/login"

PUBLIC_ROUTES = frozenset(
    {
        "/",
        "/health",
        "/docs",
        "/docs/oauth2-redirect",
        "/redoc",
        "/openapi.json",
        "/auth/login",
        "/auth/register",
        "/auth/refresh",
        "/auth/logout",
        "/auth/password-reset",
        "/auth/password-reset/confirm",
    }
)

PUBLIC_PREFIXES = ("/verify/",)


def is_public_route(path: str) -> bool:
    normalized = (path or "/").rstrip("/") or "/"
    if normalized in PUBLIC_ROUTES:
        return True
    return any(path.startswith(prefix) for prefix in PUBLIC_PREFIXES)


def _unauthorized(detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": detail, "login_url": LOGIN_URL},
        headers={"WWW-Authenticate": "Bearer"},
    )


class AuthGuardMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        # CORS preflight carries no credentials.
        if request.method == "OPTIONS" or is_public_route(request.url.path):
            return await call_next(request)

        authorization = request.headers.get("authorization")
        if not (authorization or "").strip():
            return _unauthorized("Authentication required.")

        try:
            token = dependencies.extract_bearer_token(authorization)
            security.decode_access_token(token)
        except security.AuthSecurityError as exc:
            logger.info("guard_rejected path=%s reason=%s", request.url.path, exc)
            return _unauthorized(str(exc))
        except HTTPException as exc:
            return _unauthorized(str(exc.detail))

        return await call_next(request)
