# server/app/routers/calendar.py
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool

from server.app.services.calendar import CalendarError, fetch_calendar, filter_calendar
from server.app.telemetry import telemetry

log = logging.getLogger(__name__)

# Mounted under settings.CALENDAR_ROUTE by create_app
router = APIRouter(tags=["calendar"])


@router.get("", response_class=PlainTextResponse)
async def calendar(request: Request):
    settings = request.app.state.settings
    log.info("Calendar request")

    value = request.query_params.get(settings.CALENDAR_PASS_PARAM)
    if value is None:
        log.warning(
            "Bad calendar request, no %s query param", settings.CALENDAR_PASS_PARAM
        )
        raise HTTPException(status_code=400, detail="missing query parameter")

    try:
        text = await run_in_threadpool(
            fetch_calendar,
            settings.CALENDAR_BASE_URL,
            settings.CALENDAR_PASS_PARAM,
            value,
            timeout=settings.http_timeout_s,
        )
    except CalendarError as e:
        log.error("%s", e)
        telemetry.set_error(str(e))
        raise HTTPException(status_code=500, detail="failed to fetch calendar")

    telemetry.increment("calendar_total")
    return filter_calendar(text, request.app.state.calendar_filter)
