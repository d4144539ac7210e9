from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from server.app import __version__
from server.app.config import Settings, compile_filter, validate_target_dir
from server.app.config import settings as default_settings
from server.app.routers import calendar as calendar_router
from server.app.routers import firefly as firefly_router
from server.app.routers import pcs as pcs_router
from server.app.routers import status as status_router
from server.app.routers import upload as upload_router
from server.app.services.firefly import FireflyClient, load_shortcuts, read_pat
from server.app.services.request_log import RequestLog
from server.app.telemetry import telemetry

log = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the app from settings. Raises ConfigError on bad config so the
    process never starts half-configured.

    uvicorn --factory server.app.main:create_app
    """
    C = settings or default_settings

    validate_target_dir(C.UPLOAD_TARGET_DIR)

    app = FastAPI(title="reasonable-excuse", version=__version__)
    app.state.settings = C
    app.state.request_log = RequestLog(C.REQUEST_LOG_SIZE)

    if C.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=C.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(status_router.router)
    app.include_router(upload_router.router, prefix=C.UPLOAD_ROUTE)
    app.include_router(pcs_router.router, prefix=C.PCS_ROUTE)

    if C.CALENDAR_ROUTE:
        app.state.calendar_filter = compile_filter(C.CALENDAR_FILTER)
        app.include_router(calendar_router.router, prefix=C.CALENDAR_ROUTE)

    if C.FIREFLY_ROUTE:
        app.state.firefly_shortcuts = load_shortcuts(C.FIREFLY_SHORTCUTS_FILE)
        app.state.firefly_client = FireflyClient(
            C.FIREFLY_URL, read_pat(C.FIREFLY_PAT_FILE), timeout=C.http_timeout_s
        )
        app.include_router(firefly_router.router, prefix=C.FIREFLY_ROUTE)

    telemetry.configure(C.LOG_DIR, C.MAX_LOG_MB)

    @app.on_event("startup")
    async def _startup_log():
        log.info(
            "[server] upload dir=%s filename_length=%d",
            C.UPLOAD_TARGET_DIR,
            C.UPLOAD_FILENAME_LENGTH,
        )
        log.info(
            "[server] Routes: / /status %s %s%s%s",
            C.UPLOAD_ROUTE,
            C.PCS_ROUTE,
            f" {C.CALENDAR_ROUTE}" if C.CALENDAR_ROUTE else "",
            f" {C.FIREFLY_ROUTE}" if C.FIREFLY_ROUTE else "",
        )

    return app


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=default_settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    uvicorn.run(create_app(), host=default_settings.HOST, port=default_settings.PORT)
