"""
QR certificate business logic.

Creating a certificate is a three-step write:
1. insert the row (the database assigns the id)
2. encode `{origin}/verify/{id}` as a QR PNG
3. store the PNG (as a data URL) back on the row

If step 2 or 3 fails the row is deleted again.
"""

from __future__ import annotations

import logging
import re
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status

from core import qr

from . import repository, schemas

logger = logging.getLogger(__name__)

VERIFY_PATH = "/verify"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._ -]+")


def verification_url(origin: str, qr_id: UUID | str) -> str:
    return f"{origin.rstrip('/')}{VERIFY_PATH}/{qr_id}"


def download_filename(title: str | None) -> str:
    stem = _UNSAFE_FILENAME_CHARS.sub("_", (title or "").strip()).strip() or "code"
    return f"QR-{stem}.png"


def _to_response(row: dict[str, Any], *, origin: str) -> dict[str, Any]:
    return {
        "id": row["id"],
        "title": row["title"],
        "client_name": row["client_name"],
        "data": row.get("data") or {},
        "is_active": bool(row["is_active"]),
        "created_at": row["created_at"],
        "verification_url": verification_url(origin, row["id"]),
        "qr_code_image": row.get("qr_code_image"),
    }


async def create_qr_code(payload: schemas.CertificateData, *, origin: str) -> dict[str, Any]:
    title = payload.title.strip()
    client_name = payload.client_name.strip()
    if not title or not client_name:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Title and client name are required.",
        )

    data = payload.model_dump()
    data.update(title=title, client_name=client_name)

    row = await repository.insert_qr_code(title=title, client_name=client_name, data=data)
    qr_id = row["id"]
    url = verification_url(origin, qr_id)

    try:
        image = qr.encode_data_url(url)
    except qr.QRCodeError as exc:
        logger.exception("qr_encode_failed id=%s", qr_id)
        await repository.delete_qr_code(qr_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate QR code: {exc}",
        ) from exc

    updated = await repository.set_qr_code_image(qr_id, image=image)
    if updated is None:
        await repository.delete_qr_code(qr_id)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="QR code disappeared before its image was stored.",
        )

    logger.info("qr_code_created id=%s client_name=%r", qr_id, client_name)
    return _to_response(updated, origin=origin)


async def list_qr_codes() -> list[dict[str, Any]]:
    rows = await repository.list_qr_codes()
    return [
        {
            "id": row["id"],
            "title": row["title"],
            "client_name": row["client_name"],
            "created_at": row["created_at"],
            "is_active": bool(row["is_active"]),
            "verification_count": int(row.get("verification_count") or 0),
        }
        for row in rows
    ]


async def _require_qr_code(qr_id: UUID) -> dict[str, Any]:
    row = await repository.get_qr_code(qr_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="QR code not found.")
    return row


async def get_qr_code(qr_id: UUID, *, origin: str) -> dict[str, Any]:
    return _to_response(await _require_qr_code(qr_id), origin=origin)


async def qr_code_png(qr_id: UUID, *, origin: str) -> tuple[bytes, str]:
    """
    PNG bytes and download filename for a certificate's QR code.

    Rows whose image was never stored get a freshly encoded one.
    """
    row = await _require_qr_code(qr_id)
    filename = download_filename(row.get("title"))

    stored = row.get("qr_code_image")
    try:
        if stored:
            return qr.decode_data_url(stored), filename
        return qr.encode_png(verification_url(origin, qr_id)), filename
    except qr.QRCodeError as exc:
        logger.exception("qr_image_unreadable id=%s", qr_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc


async def toggle_qr_code(qr_id: UUID, *, origin: str) -> dict[str, Any]:
    row = await repository.toggle_qr_code_active(qr_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="QR code not found.")
    logger.info("qr_code_toggled id=%s is_active=%s", qr_id, row["is_active"])
    return _to_response(row, origin=origin)
