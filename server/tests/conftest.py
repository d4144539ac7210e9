# server/tests/conftest.py
from __future__ import annotations

# Import/bootstrap so "import server.app" works when running pytest from anywhere
import os
import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent  # .../server/tests
SERVER_DIR = TESTS_DIR.parent  # .../server
REPO_ROOT = SERVER_DIR.parent  # repo root

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

# Keep optional modules off unless a test turns them on explicitly.
os.environ.setdefault("CALENDAR_ROUTE", "")
os.environ.setdefault("FIREFLY_ROUTE", "")

from fastapi.testclient import TestClient  # noqa: E402

from server.app.config import Settings  # noqa: E402
from server.app.main import create_app  # noqa: E402


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    d = tmp_path / "uploads"
    d.mkdir()
    return d


@pytest.fixture
def settings(upload_dir: Path, tmp_path: Path) -> Settings:
    return Settings(
        UPLOAD_TARGET_DIR=str(upload_dir),
        UPLOAD_FILENAME_LENGTH=6,
        LOG_DIR=str(tmp_path / "logs"),
        REQUEST_LOG_SIZE=3,
    )


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
