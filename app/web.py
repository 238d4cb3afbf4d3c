from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.schemas import RefreshMode
from services.orchestrator import RefreshOrchestrator, build_default_orchestrator


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def get_orchestrator() -> RefreshOrchestrator:
    return build_default_orchestrator()


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
async def ui_index(
    request: Request,
    orchestrator: RefreshOrchestrator = Depends(get_orchestrator),
) -> HTMLResponse:
    snapshot = orchestrator.current_snapshot()
    # Push mode still reloads the page; the feed only refreshes the server cache.
    reload_seconds = int(orchestrator.interval) if orchestrator.mode != RefreshMode.idle else None
    return templates.TemplateResponse(
        request,
        "ui/dashboard.html",
        {
            "snapshot": snapshot,
            "reload_seconds": reload_seconds,
        },
    )
