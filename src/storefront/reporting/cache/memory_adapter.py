"""In-process TTL cache for dashboard reports.

Suitable for a single API process. A distributed deployment would provide
another ``ReportCache`` adapter; nothing in the reporting code depends on this
one directly.
"""

import threading
import time
from collections.abc import Callable
from typing import Any

from storefront.reporting.cache.port import ReportCache


class InMemoryReportCache(ReportCache):
    """Dictionary-backed cache; the clock is injectable for tests."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + ttl_seconds, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
