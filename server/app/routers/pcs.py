# server/app/routers/pcs.py
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from server.app.models import RequestLogEntry
from server.app.telemetry import telemetry

log = logging.getLogger(__name__)

# Mounted under settings.PCS_ROUTE by create_app
router = APIRouter(tags=["pcs"])


@router.post("", response_class=PlainTextResponse)
async def pcs(request: Request):
    client = request.client.host if request.client else None
    body = (await request.body()).decode("utf-8", errors="replace")
    log.info("PCS request from %s (%d chars)", client, len(body))

    request.app.state.request_log.record(client=client, body=body)
    telemetry.increment("requests_logged")
    return "Thanks!"


@router.get("", response_model=List[RequestLogEntry])
async def pcs_log(request: Request):
    """Most recent logged requests, oldest first."""
    return request.app.state.request_log.entries()
