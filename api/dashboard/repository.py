"""
Dashboard read queries: verification listings and counters.
"""

from __future__ import annotations

from datetime import datetime

from core import db


async def list_verifications(*, limit: int | None = None) -> list[dict]:
    """
    Verifications newest first, joined with their QR title and client.

    `limit=None` returns every row (CSV export).
    """
    return await db.fetch_all(
        """
        SELECT v.id, v.qr_id, v.scanned_at, v.ip_address, v.user_agent, v.status,
               q.title AS qr_title, q.client_name AS qr_client_name
        FROM verifications v
        LEFT JOIN qr_codes q ON q.id = v.qr_id
        ORDER BY v.scanned_at DESC
        LIMIT $1
        """,
        limit,
    )


async def count_qr_codes(*, active_only: bool = False) -> int:
    value = await db.fetch_value(
        """
        SELECT COUNT(*)
        FROM qr_codes
        WHERE ($1 = false OR is_active = true)
        """,
        active_only,
    )
    return int(value or 0)


async def count_verifications(
    *,
    since: datetime | None = None,
    until: datetime | None = None,
) -> int:
    value = await db.fetch_value(
        """
        SELECT COUNT(*)
        FROM verifications
        WHERE ($1::timestamptz IS NULL OR scanned_at >= $1)
          AND ($2::timestamptz IS NULL OR scanned_at < $2)
        """,
        since,
        until,
    )
    return int(value or 0)
