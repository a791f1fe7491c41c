"""EventLog — bounded, newest-first record of hazard and system events.

The simulation tick writes spawn and hazard entries; advisory completions
write INFO/WARN entries from whatever task the event loop schedules them
on, and the speech worker runs on its own thread.  Appends therefore go
through a lock so every writer sees a consistent ring.
"""

from __future__ import annotations

import itertools
import threading
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum


class LogLevel(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    CRIT = "CRIT"
    SYS = "SYS"


@dataclass(frozen=True)
class LogEntry:
    """A single event-log line."""

    id: int
    timestamp: str  # HH:MM:SS.mmm, UTC
    level: LogLevel
    message: str

    def to_dict(self) -> dict:
        d = asdict(self)
        d["level"] = self.level.value
        return d


def _timestamp(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.strftime("%H:%M:%S.") + f"{now.microsecond // 1000:03d}"


class EventLog:
    """Fixed-capacity ring buffer, newest entry first."""

    DEFAULT_CAPACITY = 21

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._lock = threading.Lock()
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._ids = itertools.count(1)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def append(self, message: str, level: LogLevel = LogLevel.INFO) -> LogEntry:
        """Record *message*; evicts the oldest entry once full."""
        with self._lock:
            entry = LogEntry(
                id=next(self._ids),
                timestamp=_timestamp(),
                level=LogLevel(level),
                message=message,
            )
            self._entries.appendleft(entry)
        return entry

    def entries(self) -> list[LogEntry]:
        with self._lock:
            return list(self._entries)

    def count(self, level: LogLevel) -> int:
        with self._lock:
            return sum(1 for e in self._entries if e.level == level)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
