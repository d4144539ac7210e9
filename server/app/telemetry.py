# server/app/telemetry.py
from __future__ import annotations

import json
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import logging

log = logging.getLogger(__name__)

COUNTERS = (
    "upload_total",
    "upload_failed",
    "requests_logged",
    "calendar_total",
    "transactions_total",
)


class Telemetry:
    """
    Thread-safe telemetry singleton for the server.

    Provides in-memory counters and structured JSON logging to <log_dir>/server.jsonl.
    The JSONL sink stays off until configure() is called (create_app does this).
    All operations are wrapped in try/except so telemetry failures never fail a request.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._uptime_start = time.time()
        self._counts: Dict[str, int] = {name: 0 for name in COUNTERS}
        self._last_error: Optional[str] = None
        self._log_file: Optional[Path] = None
        self._max_log_bytes = 16 * 1024 * 1024

    def configure(self, log_dir: str | Path, max_log_mb: int = 16) -> None:
        """Enable the JSONL sink under ``log_dir``."""
        path = Path(log_dir)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except Exception as e:
            log.warning(f"Failed to create log directory {path}: {e}")
            return
        with self._lock:
            self._log_file = path / "server.jsonl"
            self._max_log_bytes = max_log_mb * 1024 * 1024

    def increment(self, counter_name: str) -> None:
        """Thread-safe counter increment. Unknown names are ignored."""
        try:
            with self._lock:
                if counter_name in self._counts:
                    self._counts[counter_name] += 1
        except Exception as e:
            log.debug(f"Telemetry increment failed for {counter_name}: {e}")

    def set_error(self, error: str) -> None:
        """Set the last error message."""
        try:
            with self._lock:
                self._last_error = str(error)
        except Exception as e:
            log.debug(f"Telemetry set_error failed: {e}")

    def log_json(self, event: str, level: str = "info", **fields: Any) -> None:
        """
        Write structured JSON log entry to server.jsonl.

        Fields: ts, level, subsystem="server", event, plus any kwargs.
        """
        if self._log_file is None:
            return
        try:
            log_entry = {
                "ts": datetime.now(timezone.utc).isoformat(),
                "level": level,
                "subsystem": "server",
                "event": event,
                **fields,
            }

            self._maybe_rotate_log()

            with self._lock:
                with open(self._log_file, "a", encoding="utf-8") as f:
                    f.write(json.dumps(log_entry, ensure_ascii=False, default=str) + "\n")

        except Exception as e:
            log.debug(f"Telemetry log_json failed: {e}")

    def _maybe_rotate_log(self) -> None:
        """Rotate log file if it exceeds size limit (2-deep: .1, .2)."""
        try:
            log_file = self._log_file
            if log_file is None:
                return
            if log_file.exists() and log_file.stat().st_size > self._max_log_bytes:
                log_file_2 = log_file.with_suffix(".jsonl.2")
                log_file_1 = log_file.with_suffix(".jsonl.1")

                if log_file_2.exists():
                    log_file_2.unlink()
                if log_file_1.exists():
                    log_file_1.rename(log_file_2)
                log_file.rename(log_file_1)
        except Exception as e:
            log.warning(f"Log rotation failed: {e}")

    def get_stats(self) -> Dict[str, Any]:
        """Get current telemetry statistics."""
        try:
            with self._lock:
                return {
                    "uptime_s": int(time.time() - self._uptime_start),
                    **self._counts,
                    "last_error": self._last_error,
                }
        except Exception as e:
            log.debug(f"Telemetry get_stats failed: {e}")
            return {
                "uptime_s": 0,
                **{name: 0 for name in COUNTERS},
                "last_error": None,
            }


# Singleton instance
telemetry = Telemetry()
