# server/app/routers/status.py
from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from server.app import __version__
from server.app.telemetry import telemetry

router = APIRouter(tags=["status"])


@router.get("/")
async def root():
    return {"message": "reasonable-excuse server", "version": __version__}


@router.get("/status")
async def status(request: Request):
    """
    Returns service health + counters.
      - modules: which optional routes are mounted and where
      - counters: telemetry counters since process start
    """
    settings = request.app.state.settings
    stats = telemetry.get_stats()

    modules = {
        "upload": settings.UPLOAD_ROUTE,
        "pcs": settings.PCS_ROUTE,
        "calendar": settings.CALENDAR_ROUTE or None,
        "firefly": settings.FIREFLY_ROUTE or None,
    }

    data = {
        "ok": True,
        "version": __version__,
        "upload_dir": str(settings.UPLOAD_TARGET_DIR),
        "filename_length": settings.UPLOAD_FILENAME_LENGTH,
        "modules": modules,
        "request_log": {
            "size": len(request.app.state.request_log),
            "capacity": request.app.state.request_log.capacity,
        },
        **stats,
    }
    return JSONResponse(data)
