"""
QR certificate API endpoints (generator form + management).
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response, status

from auth import dependencies as auth_dependencies
from core import http

from . import schemas, service

router = APIRouter(prefix="/qr-codes")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_qr_code(
    payload: schemas.CertificateData,
    request: Request,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.create_qr_code(payload, origin=http.request_origin(request))


@router.get("")
async def list_qr_codes(
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    rows = await service.list_qr_codes()
    return {"qr_codes": rows, "count": len(rows)}


@router.get("/{qr_id}")
async def get_qr_code(
    qr_id: UUID,
    request: Request,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.get_qr_code(qr_id, origin=http.request_origin(request))


@router.get("/{qr_id}/image.png")
async def download_qr_code(
    qr_id: UUID,
    request: Request,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> Response:
    png, filename = await service.qr_code_png(qr_id, origin=http.request_origin(request))
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.patch("/{qr_id}/toggle")
async def toggle_qr_code(
    qr_id: UUID,
    request: Request,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    """
    Flip `is_active` on one QR code. Inactive codes fail verification.
    """
    return await service.toggle_qr_code(qr_id, origin=http.request_origin(request))
