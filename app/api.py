"""HTTP route definitions for the service."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response

from app.schemas import DashboardSnapshot, FilterState, StatusResponse
from services.orchestrator import RefreshOrchestrator, build_default_orchestrator

router = APIRouter()


def get_orchestrator() -> RefreshOrchestrator:
    return build_default_orchestrator()


@router.get(
    "/api/dashboard",
    response_model=DashboardSnapshot,
    summary="Latest dashboard snapshot for the current filters.",
)
async def get_dashboard(
    orchestrator: RefreshOrchestrator = Depends(get_orchestrator),
) -> DashboardSnapshot:
    return orchestrator.current_snapshot()


@router.put(
    "/api/filters",
    response_model=DashboardSnapshot,
    summary="Change the dashboard filters and refresh immediately.",
)
async def update_filters(
    filters: FilterState,
    orchestrator: RefreshOrchestrator = Depends(get_orchestrator),
) -> DashboardSnapshot:
    return await orchestrator.update_filters(filters)


@router.get(
    "/api/devices",
    response_model=List[str],
    summary="Known devices, ordered by name then number.",
)
async def list_devices(
    orchestrator: RefreshOrchestrator = Depends(get_orchestrator),
) -> List[str]:
    return list(orchestrator.session.devices)


@router.get(
    "/api/export",
    summary="Export cached readings in an instant range as CSV.",
    response_class=Response,
)
async def export_csv(
    start: Optional[datetime] = Query(None, description="Inclusive lower bound."),
    end: Optional[datetime] = Query(None, description="Inclusive upper bound."),
    device: Optional[str] = Query(None, description="Device to export, all when empty."),
    orchestrator: RefreshOrchestrator = Depends(get_orchestrator),
) -> Response:
    try:
        export = orchestrator.export_csv(start=start, end=end, device=device or None)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return Response(
        content=export.content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.get(
    "/api/status",
    response_model=StatusResponse,
    summary="Refresh mode and run bookkeeping.",
)
async def get_status(
    orchestrator: RefreshOrchestrator = Depends(get_orchestrator),
) -> StatusResponse:
    return orchestrator.status()


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /ui for the dashboard and /health for status."}
