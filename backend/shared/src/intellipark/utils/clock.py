"""Millisecond timestamps.

``now_millis`` is wall-clock time. ``MonotonicMillis`` hands out strictly
increasing values, which keeps SLOT-<slotId>-<ts> external ids unique even
for back-to-back requests within the same millisecond.
"""

import threading
import time
from typing import Callable

Clock = Callable[[], int]


def now_millis() -> int:
    """Current Unix time in milliseconds."""
    return time.time_ns() // 1_000_000


class MonotonicMillis:
    """Strictly increasing millisecond source, safe across threads."""

    def __init__(self, clock: Clock = now_millis) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            value = max(self._clock(), self._last + 1)
            self._last = value
            return value
