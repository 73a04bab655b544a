"""
QR certificate persistence (raw SQL).
"""

from __future__ import annotations

import json
from typing import Any
from uuid import UUID

from core import db


def _json_dumps(value: object) -> str:
    return json.dumps(value, ensure_ascii=True)


def decode_data(row: dict[str, Any] | None) -> dict[str, Any] | None:
    # asyncpg hands jsonb back as text unless a codec is registered.
    if row is None:
        return None
    raw = row.get("data")
    if isinstance(raw, str):
        row["data"] = json.loads(raw) if raw else {}
    elif raw is None:
        row["data"] = {}
    return row


async def insert_qr_code(*, title: str, client_name: str, data: dict) -> dict:
    row = await db.fetch_one(
        """
        INSERT INTO qr_codes (title, client_name, data)
        VALUES ($1, $2, $3::jsonb)
        RETURNING id, title, client_name, data, is_active, created_at, qr_code_image
        """,
        title,
        client_name,
        _json_dumps(data),
    )
    if row is None:
        raise RuntimeError("Failed to create QR code.")
    return decode_data(row)


async def set_qr_code_image(qr_id: UUID, *, image: str) -> dict | None:
    row = await db.fetch_one(
        """
        UPDATE qr_codes
        SET qr_code_image = $2
        WHERE id = $1
        RETURNING id, title, client_name, data, is_active, created_at, qr_code_image
        """,
        qr_id,
        image,
    )
    return decode_data(row)


async def delete_qr_code(qr_id: UUID) -> None:
    await db.execute("DELETE FROM qr_codes WHERE id = $1", qr_id)


async def get_qr_code(qr_id: UUID) -> dict | None:
    row = await db.fetch_one(
        """
        SELECT id, title, client_name, data, is_active, created_at, qr_code_image
        FROM qr_codes
        WHERE id = $1
        """,
        qr_id,
    )
    return decode_data(row)


async def list_qr_codes() -> list[dict]:
    """
    All QR codes newest first, each with its number of verifications.
    """
    return await db.fetch_all(
        """
        SELECT q.id, q.title, q.client_name, q.created_at, q.is_active,
               COUNT(v.id)::int AS verification_count
        FROM qr_codes q
        LEFT JOIN verifications v ON v.qr_id = q.id
        GROUP BY q.id
        ORDER BY q.created_at DESC
        """
    )


async def toggle_qr_code_active(qr_id: UUID) -> dict | None:
    row = await db.fetch_one(
        """
        UPDATE qr_codes
        SET is_active = NOT is_active
        WHERE id = $1
        RETURNING id, title, client_name, data, is_active, created_at, qr_code_image
        """,
        qr_id,
    )
    return decode_data(row)
