from __future__ import annotations

import threading
from collections import deque
from datetime import datetime, timezone
from typing import Deque, Dict, List, Optional


class RequestLog:
    """Bounded, in-memory record of the most recent requests (oldest dropped first)."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be > 0, got {capacity}")
        self._lock = threading.Lock()
        self._entries: Deque[Dict] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def record(self, *, client: Optional[str], body: str) -> Dict:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "client": client,
            "body": body,
        }
        with self._lock:
            self._entries.append(entry)
        return entry

    def entries(self) -> List[Dict]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
