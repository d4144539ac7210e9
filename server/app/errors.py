# server/app/errors.py
"""Error types shared by the storage engine, the routers and the CLI.

Each ``StoreError`` knows whether it is the caller's fault (``client_error``)
so the HTTP layer and the CLI can map it without a lookup table.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional


class ConfigError(Exception):
    """Invalid startup configuration. Fatal at boot, never raised per request."""


class StoreError(Exception):
    client_error: bool = False


class MissingExtension(StoreError):
    client_error = True

    def __init__(self, name: str) -> None:
        super().__init__(f"file name has no extension: {name!r}")
        self.name = name


class InvalidName(StoreError):
    client_error = True

    def __init__(self, name: str) -> None:
        super().__init__(f"file name would leave the upload directory: {name!r}")
        self.name = name


class NameCollision(StoreError):
    client_error = True

    def __init__(self, path: Path) -> None:
        super().__init__(f"file already exists: {path}")
        self.path = path


class RetryBudgetExceeded(StoreError):
    def __init__(self, attempts: int) -> None:
        super().__init__(
            f"gave up after {attempts} name collisions; "
            "check the configured filename length"
        )
        self.attempts = attempts


class StoreIOError(StoreError):
    def __init__(self, path: Path, cause: Optional[OSError] = None) -> None:
        super().__init__(f"I/O error on {path}: {cause}")
        self.path = path
        self.cause = cause
