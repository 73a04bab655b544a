"""
Public verification endpoint (target of the QR code link).
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from core import http

from . import service

router = APIRouter()


@router.get("/verify/{qr_id}")
async def verify(qr_id: str, request: Request) -> dict:
    return await service.verify(
        qr_id,
        ip_address=http.client_ip(request),
        user_agent=http.user_agent(request),
    )
