"""
Auth API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from core import http

from . import dependencies, schemas, service

router = APIRouter(prefix="/auth")


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: schemas.RegisterRequest, request: Request) -> schemas.AuthResponse:
    return await service.register(
        payload,
        user_agent=http.user_agent(request),
        ip_address=http.client_ip(request),
    )


@router.post("/login")
async def login(payload: schemas.LoginRequest, request: Request) -> schemas.AuthResponse:
    return await service.login(
        payload,
        user_agent=http.user_agent(request),
        ip_address=http.client_ip(request),
    )


@router.post("/refresh")
async def refresh(payload: schemas.RefreshRequest, request: Request) -> schemas.TokenPairResponse:
    return await service.refresh_tokens(
        payload,
        user_agent=http.user_agent(request),
        ip_address=http.client_ip(request),
    )


@router.post("/logout")
async def logout(
    payload: schemas.LogoutRequest,
    current_user: dict | None = Depends(dependencies.get_optional_current_user),
) -> dict:
    current_user_id = int(current_user["id"]) if current_user is not None else None
    return await service.logout(payload, current_user_id=current_user_id)


@router.get("/me")
async def me(access_token: str = Depends(dependencies.get_bearer_token)) -> schemas.UserResponse:
    return await service.me(access_token)


@router.post("/password-reset")
async def request_password_reset(payload: schemas.PasswordResetRequest, request: Request) -> dict:
    return await service.request_password_reset(payload, origin=http.request_origin(request))


@router.post("/password-reset/confirm")
async def confirm_password_reset(payload: schemas.PasswordResetConfirmRequest) -> dict:
    return await service.confirm_password_reset(payload)
