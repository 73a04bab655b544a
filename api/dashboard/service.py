"""
Admin dashboard: aggregated reads and CSV export.

The dashboard view fans out three independent loaders and waits for all
of them. There is no partial result: if any loader fails the request
answers 503 and the client tries again on its next action.
"""

from __future__ import annotations

import asyncio
import csv
import io
import logging
from datetime import datetime, time, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo

from fastapi import HTTPException, status

from certificates import service as certificates_service
from core import settings

from . import repository

logger = logging.getLogger(__name__)

RECENT_VERIFICATIONS_LIMIT = 50
CSV_HEADER = ("Date", "QR Title", "Client Name", "IP Address", "Status")
CSV_DATE_FORMAT = "%d %b %Y %H:%M"


def day_bounds(now: datetime, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """
    Half-open [start, end) of the calendar day containing `now` in `tz`.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local_day = now.astimezone(tz).date()
    start = datetime.combine(local_day, time.min, tzinfo=tz)
    end = datetime.combine(local_day + timedelta(days=1), time.min, tzinfo=tz)
    return start, end


def _to_verification(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": row["id"],
        "qr_id": row["qr_id"],
        "scanned_at": row["scanned_at"],
        "ip_address": row.get("ip_address"),
        "user_agent": row.get("user_agent"),
        "status": row.get("status"),
        "qr_code": {
            "title": row.get("qr_title") or "",
            "client_name": row.get("qr_client_name") or "",
        },
    }


async def recent_verifications(limit: int = RECENT_VERIFICATIONS_LIMIT) -> list[dict[str, Any]]:
    rows = await repository.list_verifications(limit=limit)
    return [_to_verification(row) for row in rows]


async def stats(*, now: datetime | None = None) -> dict[str, int]:
    start, end = day_bounds(now or datetime.now(timezone.utc), settings.display_timezone())
    total_qr, active_qr, total_verif, today_verif = await asyncio.gather(
        repository.count_qr_codes(),
        repository.count_qr_codes(active_only=True),
        repository.count_verifications(),
        repository.count_verifications(since=start, until=end),
    )
    return {
        "total_qr_codes": total_qr,
        "active_qr_codes": active_qr,
        "total_verifications": total_verif,
        "today_verifications": today_verif,
    }


async def dashboard() -> dict[str, Any]:
    try:
        qr_codes, verifications, counters = await asyncio.gather(
            certificates_service.list_qr_codes(),
            recent_verifications(),
            stats(),
        )
    except Exception as exc:
        logger.exception("dashboard_load_failed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to load dashboard data.",
        ) from exc

    return {
        "qr_codes": qr_codes,
        "verifications": verifications,
        "stats": counters,
    }


def format_scanned_at(value: datetime | None, tz: ZoneInfo) -> str:
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz).strftime(CSV_DATE_FORMAT)


def build_csv(rows: list[dict[str, Any]], tz: ZoneInfo) -> str:
    """
    Render verification rows as CSV: one header line plus one line per row.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in rows:
        writer.writerow(
            (
                format_scanned_at(row.get("scanned_at"), tz),
                row.get("qr_title") or "",
                row.get("qr_client_name") or "",
                row.get("ip_address") or "",
                row.get("status") or "",
            )
        )
    return buf.getvalue()


def export_filename(now: datetime, tz: ZoneInfo) -> str:
    return f"verifications-{now.astimezone(tz).date().isoformat()}.csv"


async def export_csv(*, now: datetime | None = None) -> tuple[str, str, int]:
    """
    Returns (csv_text, filename, data_row_count).
    """
    tz = settings.display_timezone()
    rows = await repository.list_verifications()
    text = build_csv(rows, tz)
    filename = export_filename(now or datetime.now(timezone.utc), tz)
    logger.info("verifications_exported rows=%s", len(rows))
    return text, filename, len(rows)
