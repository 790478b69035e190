"""Clock sources used to stamp deployments and fire timer jobs."""

from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """A settable clock for tests and simulations."""

    def __init__(self, current: datetime | None = None) -> None:
        self._lock = threading.Lock()
        self._current = current or datetime.now(UTC)

    def now(self) -> datetime:
        with self._lock:
            return self._current

    def set(self, current: datetime) -> None:
        with self._lock:
            self._current = current

    def advance(self, delta: timedelta) -> datetime:
        with self._lock:
            self._current += delta
            return self._current
