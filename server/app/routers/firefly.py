# server/app/routers/firefly.py
from __future__ import annotations

import json
import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool

from server.app.models import AddTransactionIn
from server.app.services.firefly import FireflyError, ShortcutError, find_shortcut
from server.app.telemetry import telemetry

log = logging.getLogger(__name__)

# Mounted under settings.FIREFLY_ROUTE by create_app
router = APIRouter(tags=["firefly"])


@router.get("/shortcuts")
async def get_shortcuts(request: Request):
    log.info("get_shortcuts request")
    shortcuts = request.app.state.firefly_shortcuts
    return PlainTextResponse(
        json.dumps([s.model_dump() for s in shortcuts], indent=2),
        media_type="application/json",
    )


@router.post("/add-transaction", response_class=PlainTextResponse)
async def add_transaction(request: Request, body: AddTransactionIn):
    log.info("add_transaction request for shortcut %s", body.shortcut_id)
    client = request.app.state.firefly_client

    try:
        shortcut = find_shortcut(request.app.state.firefly_shortcuts, body.shortcut_id)
        text = await run_in_threadpool(
            client.add_transaction, shortcut, body.amount_override
        )
    except ShortcutError as e:
        log.error("%s", e)
        raise HTTPException(status_code=400, detail=str(e))
    except FireflyError as e:
        log.error("Could not add transaction: %s", e)
        telemetry.set_error(str(e))
        raise HTTPException(status_code=500, detail="firefly request failed")

    telemetry.increment("transactions_total")
    telemetry.log_json(
        "transaction", shortcut_id=shortcut.shortcut_id, shortcut=shortcut.name
    )
    return text
