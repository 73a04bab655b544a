"""
Verification persistence: active-record lookup and the scan audit log.
"""

from __future__ import annotations

from uuid import UUID

from certificates.repository import decode_data
from core import db

VERIFIED = "verified"


async def get_active_qr_code(qr_id: UUID) -> dict | None:
    row = await db.fetch_one(
        """
        SELECT id, title, client_name, data, is_active, created_at
        FROM qr_codes
        WHERE id = $1
          AND is_active = true
        """,
        qr_id,
    )
    return decode_data(row)


async def insert_verification(
    qr_id: UUID,
    *,
    ip_address: str,
    user_agent: str,
    status: str = VERIFIED,
) -> dict:
    row = await db.fetch_one(
        """
        INSERT INTO verifications (qr_id, ip_address, user_agent, status)
        VALUES ($1, $2, $3, $4)
        RETURNING id, qr_id, scanned_at, ip_address, user_agent, status
        """,
        qr_id,
        ip_address,
        user_agent,
        status,
    )
    if row is None:
        raise RuntimeError("Failed to record verification.")
    return row
