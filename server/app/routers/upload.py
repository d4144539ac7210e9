# server/app/routers/upload.py
from __future__ import annotations

import logging
from typing import Tuple

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from server.app.errors import NameCollision, StoreError
from server.app.services.naming import split_extension
from server.app.services.storage import KeepName, RandomName, store
from server.app.telemetry import telemetry

log = logging.getLogger(__name__)

# Mounted under settings.UPLOAD_ROUTE by create_app
router = APIRouter(tags=["upload"])


async def _read_file_part(request: Request) -> Tuple[str, bytes]:
    """First multipart part must be a file named 'file'; anything else is a 400."""
    try:
        form = await request.form()
    except Exception as e:
        log.warning("Unreadable upload body: %s", e)
        raise HTTPException(status_code=400, detail="unreadable multipart body")

    items = form.multi_items()
    if not items or items[0][0] != "file":
        raise HTTPException(status_code=400, detail="expected a 'file' part")
    part = items[0][1]
    if not isinstance(part, UploadFile) or not part.filename:
        raise HTTPException(status_code=400, detail="'file' part has no filename")

    try:
        content = await part.read()
    except Exception as e:
        log.warning("Failed to read upload part: %s", e)
        raise HTTPException(status_code=400, detail="failed to read 'file' part")
    finally:
        await part.close()

    log.info("Got file %s with %d bytes", part.filename, len(content))
    return part.filename, content


@router.get("", response_class=PlainTextResponse)
async def upload_hint():
    return "POST to this address to upload files"


@router.post("", response_class=PlainTextResponse)
async def upload(request: Request, keep_name: bool = False):
    """
    Store the uploaded file and return its final name as plain text.

    keep_name=false (default): random short name + original extension.
    keep_name=true: original name verbatim, 409 if it already exists.
    """
    client = request.client.host if request.client else None
    log.info("Upload request from %s", client)
    settings = request.app.state.settings

    original_name, content = await _read_file_part(request)
    telemetry.increment("upload_total")

    try:
        if keep_name:
            split_extension(original_name)
            naming = KeepName(original_name)
        else:
            naming = RandomName(
                settings.UPLOAD_FILENAME_LENGTH, split_extension(original_name)
            )
        name = await run_in_threadpool(
            store,
            settings.UPLOAD_TARGET_DIR,
            content,
            naming,
            retry_limit=settings.UPLOAD_RETRY_LIMIT,
        )
    except StoreError as e:
        telemetry.increment("upload_failed")
        telemetry.log_json(
            "upload",
            level="warning" if e.client_error else "error",
            status="failed",
            client=client,
            original_name=original_name,
            error=str(e),
        )
        if not e.client_error:
            telemetry.set_error(str(e))
            raise HTTPException(status_code=500, detail="failed to store upload")
        status_code = 409 if isinstance(e, NameCollision) else 400
        raise HTTPException(status_code=status_code, detail=str(e))

    telemetry.log_json(
        "upload",
        status="ok",
        client=client,
        original_name=original_name,
        stored_name=name,
        bytes=len(content),
        keep_name=keep_name,
    )
    return name
