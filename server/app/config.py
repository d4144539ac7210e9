# server/app/config.py
from __future__ import annotations

import re
import stat
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from server.app.errors import ConfigError

# Resolve repo root: repo/ (since this file is repo/server/app/config.py)
REPO_ENV = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    """
    Central config for the server. Uses Pydantic v2 + pydantic-settings.

    - Loads env from the repo root .env if present
    - Ignores unknown env vars
    - Case-insensitive env keys
    - Optional modules (calendar, firefly) stay off until their route is set
    """

    model_config = SettingsConfigDict(
        env_file=str(REPO_ENV),
        extra="ignore",
        case_sensitive=False,
    )

    # --- Server ---------------------------------------------------------------
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    LOG_LEVEL: str = "info"
    CORS_ORIGINS: str = ""  # comma separated; empty -> no CORS middleware

    # --- Upload ---------------------------------------------------------------
    UPLOAD_ROUTE: str = "/upload"
    UPLOAD_TARGET_DIR: str = "data/uploads"  # must already exist
    UPLOAD_FILENAME_LENGTH: int = Field(default=6, gt=0)
    UPLOAD_RETRY_LIMIT: int = Field(default=1000, gt=0)

    # --- Calendar proxy (empty route disables) --------------------------------
    CALENDAR_ROUTE: str = ""
    CALENDAR_BASE_URL: str = ""
    CALENDAR_PASS_PARAM: str = "token"
    CALENDAR_FILTER: str = ""  # regex; every match is removed from the feed

    # --- Firefly III shortcuts (empty route disables) -------------------------
    FIREFLY_ROUTE: str = ""
    FIREFLY_URL: str = ""
    FIREFLY_PAT_FILE: str = ""
    FIREFLY_SHORTCUTS_FILE: str = ""

    # --- Request log ----------------------------------------------------------
    PCS_ROUTE: str = "/pcs"
    REQUEST_LOG_SIZE: int = Field(default=100, gt=0)

    # --- Timeouts (ms) --------------------------------------------------------
    HTTP_TIMEOUT_MS: int = 15000  # outbound calls (calendar/firefly)

    # --- Telemetry ------------------------------------------------------------
    LOG_DIR: str = "data/logs"
    MAX_LOG_MB: int = 16

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def http_timeout_s(self) -> float:
        return self.HTTP_TIMEOUT_MS / 1000.0


def validate_target_dir(path: str | Path) -> Path:
    """Upload dir must exist and be a directory; checked once at startup."""
    p = Path(path)
    try:
        meta = p.stat()
    except OSError as e:
        raise ConfigError(
            f"Failed to check metadata of upload target dir {p}: {e}"
        ) from e
    if not stat.S_ISDIR(meta.st_mode):
        raise ConfigError(f"Upload target path {p} is not a directory!")
    return p


def compile_filter(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"Failed to compile calendar filter regex: {e}") from e


# Singleton-style instance used by the app/CLI
settings = Settings()
