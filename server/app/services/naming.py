"""Upload file naming: random short identifiers and extension extraction.

Stdlib-only and stateless; every call draws from its own entropy source
unless the caller injects one (tests do, to force collisions).
"""

from __future__ import annotations

import secrets
import string
from typing import Optional, Protocol

from server.app.errors import MissingExtension

# a-z -> 0..25, A-Z -> 26..51, 0-9 -> 52..61
ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits


class RandomSource(Protocol):
    def randrange(self, stop: int) -> int: ...


def generate_name(length: int, rng: Optional[RandomSource] = None) -> str:
    """Return ``length`` characters drawn uniformly from ``ALPHABET``."""
    if length < 0:
        raise ValueError(f"length must be >= 0, got {length}")
    if rng is None:
        rng = secrets.SystemRandom()
    return "".join(ALPHABET[rng.randrange(len(ALPHABET))] for _ in range(length))


def split_extension(name: str) -> str:
    """Extension after the last '.', verbatim. ``"trailing."`` gives ``""``."""
    _, dot, ext = name.rpartition(".")
    if not dot:
        raise MissingExtension(name)
    return ext


__all__ = ["ALPHABET", "RandomSource", "generate_name", "split_extension"]
