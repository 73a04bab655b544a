"""
Dashboard API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from auth import dependencies as auth_dependencies

from . import service

router = APIRouter(prefix="/dashboard")


@router.get("")
async def get_dashboard(
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.dashboard()


@router.get("/stats")
async def get_stats(
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.stats()


@router.get("/verifications")
async def get_verifications(
    limit: int = Query(service.RECENT_VERIFICATIONS_LIMIT, ge=1, le=500),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    rows = await service.recent_verifications(limit)
    return {"verifications": rows, "limit": limit, "count": len(rows)}


@router.get("/export.csv")
async def export_verifications(
    _: dict = Depends(auth_dependencies.get_current_user),
) -> Response:
    text, filename, row_count = await service.export_csv()
    return Response(
        content=text,
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Row-Count": str(row_count),
        },
    )
