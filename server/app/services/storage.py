# server/app/services/storage.py
"""Atomic, race-free persistence of uploaded bytes into a single directory.

The only mutual exclusion between concurrent uploads (threads, workers or
separate processes sharing the directory) is ``O_CREAT | O_EXCL``: the kernel
checks for an existing file and creates the new one in a single step. This
module keeps no lock, counter or table of claimed names.

Two naming modes:
  * ``RandomName`` - fresh identifier + original extension; a collision is
    retried with a new identifier, up to ``retry_limit`` times.
  * ``KeepName``   - caller's name verbatim; a collision is an error, the
    existing file is never overwritten.

A write error after the file was created leaves the partial file in place.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from server.app.errors import (
    InvalidName,
    NameCollision,
    RetryBudgetExceeded,
    StoreIOError,
)
from server.app.services.naming import RandomSource, generate_name

log = logging.getLogger(__name__)

DEFAULT_RETRY_LIMIT = 1000

# O_BINARY only exists (and matters) on Windows
_CREATE_FLAGS = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)
_FORBIDDEN_CHARS = ("/", "\\", "\x00")


@dataclass(frozen=True)
class RandomName:
    length: int
    extension: str


@dataclass(frozen=True)
class KeepName:
    name: str


Naming = Union[RandomName, KeepName]


def _check_name(name: str) -> None:
    """Reject names that would resolve outside the target directory."""
    if name in ("", ".", "..") or any(c in name for c in _FORBIDDEN_CHARS):
        raise InvalidName(name)


def _create_exclusive(path: Path) -> int:
    """Create ``path`` or raise FileExistsError; one syscall, no pre-check."""
    return os.open(path, _CREATE_FLAGS, 0o666)


def _write_all(fd: int, content: bytes) -> None:
    view = memoryview(content)
    while view:
        written = os.write(fd, view)
        view = view[written:]


def _write_and_close(fd: int, path: Path, content: bytes) -> None:
    try:
        _write_all(fd, content)
    except OSError as e:
        log.error("Error writing upload to %s: %s", path, e)
        raise StoreIOError(path, e) from e
    finally:
        os.close(fd)


def _claim_random(
    directory: Path,
    naming: RandomName,
    rng: Optional[RandomSource],
    retry_limit: int,
) -> tuple[str, Path, int]:
    collisions = 0
    while True:
        name = f"{generate_name(naming.length, rng)}.{naming.extension}"
        _check_name(name)
        path = directory / name
        try:
            return name, path, _create_exclusive(path)
        except FileExistsError:
            collisions += 1
            log.debug("Random name %s already taken (%d)", name, collisions)
            if collisions >= retry_limit:
                log.error(
                    "Giving up on %s after %d collisions", directory, collisions
                )
                raise RetryBudgetExceeded(collisions)
        except OSError as e:
            log.error("Error creating upload file %s: %s", path, e)
            raise StoreIOError(path, e) from e


def _claim_kept(directory: Path, naming: KeepName) -> tuple[str, Path, int]:
    _check_name(naming.name)
    path = directory / naming.name
    try:
        return naming.name, path, _create_exclusive(path)
    except FileExistsError:
        log.info("Refusing to overwrite existing upload %s", path)
        raise NameCollision(path)
    except OSError as e:
        log.error("Error creating upload file %s: %s", path, e)
        raise StoreIOError(path, e) from e


def store(
    directory: Union[str, Path],
    content: bytes,
    naming: Naming,
    *,
    rng: Optional[RandomSource] = None,
    retry_limit: int = DEFAULT_RETRY_LIMIT,
) -> str:
    """
    Persist ``content`` as a new file in ``directory`` and return its name.

    Raises InvalidName, NameCollision (KeepName only), RetryBudgetExceeded
    (RandomName only) or StoreIOError.
    """
    directory = Path(directory)
    if isinstance(naming, KeepName):
        name, path, fd = _claim_kept(directory, naming)
    else:
        name, path, fd = _claim_random(directory, naming, rng, retry_limit)

    _write_and_close(fd, path, content)
    log.info("Stored upload %s (%d bytes)", path, len(content))
    return name


__all__ = [
    "DEFAULT_RETRY_LIMIT",
    "KeepName",
    "Naming",
    "RandomName",
    "store",
]
