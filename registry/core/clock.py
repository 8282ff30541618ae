# registry/core/clock.py
"""
Logical clock collaborators. The ledger only needs "now" to be non-decreasing;
it never compares timestamps with wall time.
"""

import threading
import time
from abc import ABC, abstractmethod


class Clock(ABC):
    @abstractmethod
    def now(self) -> int:
        pass

    def observe(self, timestamp: int) -> None:
        """Called with every timestamp restored from storage so `now` never falls behind it."""


class SystemClock(Clock):
    """UNIX seconds, clamped so a wall-clock step backwards never goes below the last reading."""

    def __init__(self):
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            self._last = max(self._last, int(time.time()))
            return self._last

    def observe(self, timestamp: int) -> None:
        with self._lock:
            self._last = max(self._last, timestamp)


class ManualClock(Clock):
    """Explicitly driven clock for tests and replays."""

    def __init__(self, start: int = 0):
        self._now = start

    def now(self) -> int:
        return self._now

    def set(self, value: int) -> None:
        if value < self._now:
            raise ValueError(f"Clock cannot move backwards ({value} < {self._now})")
        self._now = value

    def advance(self, seconds: int = 1) -> int:
        self.set(self._now + seconds)
        return self._now

    def observe(self, timestamp: int) -> None:
        if timestamp > self._now:
            self._now = timestamp


class CounterClock(Clock):
    """
    Strictly increasing server-side counter. Every reading is unique, so two
    identical submissions can never land in the same time quantum.
    """

    def __init__(self, start: int = 0):
        self._next = start
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value

    def observe(self, timestamp: int) -> None:
        with self._lock:
            self._next = max(self._next, timestamp + 1)
