"""sentitrade.core.activity

Activity log: the human-readable feed of what the engine just did.

Append-only, bounded, thread-safe. Appending never blocks on IO; entries are
mirrored to the ``sentitrade.activity`` logger and kept in a ring buffer for the
read surface.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime

from sentitrade.core.time import ensure_utc
from sentitrade.core.types import Severity

logger = logging.getLogger("sentitrade.activity")

_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


@dataclass(frozen=True, slots=True)
class ActivityEntry:
    seq: int
    ts: datetime
    message: str
    severity: Severity


class ActivityLog:
    def __init__(self, max_entries: int = 50) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._lock = threading.Lock()
        self._entries: deque[ActivityEntry] = deque(maxlen=int(max_entries))
        self._seq = 0

    def append(self, message: str, severity: Severity = Severity.INFO, *, ts: datetime | None = None) -> ActivityEntry:
        with self._lock:
            self._seq += 1
            entry = ActivityEntry(seq=self._seq, ts=ensure_utc(ts), message=str(message), severity=Severity(severity))
            self._entries.append(entry)
        logger.log(_LEVELS[entry.severity], entry.message, extra={"severity": entry.severity.value})
        return entry

    def entries(self, limit: int | None = None) -> list[ActivityEntry]:
        """Oldest first. ``limit`` keeps the most recent N."""

        with self._lock:
            items = list(self._entries)
        if limit is not None and limit >= 0:
            items = items[-limit:] if limit else []
        return items

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
