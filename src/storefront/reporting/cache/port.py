"""Report cache port (abstract interface).

Dashboard figures are expensive to derive from the full order collection, so
they are cached for a short time-to-live. Entries expire on their own; writes
to orders never invalidate them, so readers may see figures up to one TTL old.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any


class ReportCache(ABC):
    """Abstract key/value cache with per-entry expiry."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when absent or expired."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...

    def get_or_compute(self, key: str, compute: Callable[[], Any], ttl_seconds: float) -> Any:
        value = self.get(key)
        if value is None:
            value = compute()
            self.set(key, value, ttl_seconds)
        return value
