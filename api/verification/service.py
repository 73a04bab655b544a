"""
Public certificate verification.

A scan is valid only for an existing, active QR code. Every valid scan
appends one row to `verifications`; failing to write that audit row does
not invalidate the scan.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status

from . import repository

logger = logging.getLogger(__name__)

INVALID_DETAIL = "QR code is invalid or no longer active."


def _parse_qr_id(raw: str) -> UUID | None:
    try:
        return UUID((raw or "").strip())
    except ValueError:
        return None


async def verify(raw_qr_id: str, *, ip_address: str, user_agent: str) -> dict[str, Any]:
    qr_id = _parse_qr_id(raw_qr_id)
    record = await repository.get_active_qr_code(qr_id) if qr_id is not None else None
    if record is None:
        logger.info("verification_rejected qr_id=%r ip=%s", raw_qr_id, ip_address)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=INVALID_DETAIL)

    recorded = True
    try:
        await repository.insert_verification(
            qr_id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
    except Exception:
        recorded = False
        logger.exception("verification_record_failed qr_id=%s", qr_id)

    return {
        "valid": True,
        "qr_code": {
            "id": record["id"],
            "title": record["title"],
            "client_name": record["client_name"],
            "data": record.get("data") or {},
            "is_active": bool(record["is_active"]),
            "created_at": record["created_at"],
        },
        "verification_recorded": recorded,
    }
