"""In-memory cache entries with time-based expiry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """A cached value with its insertion time and time-to-live.

    Times come from the pool manager's monotonic clock. An expired entry is
    replaced by a fresh one, never refreshed in place; only ``last_used_at``
    moves while the entry is alive.
    """

    value: V
    inserted_at: float
    ttl: float
    last_used_at: float

    @classmethod
    def create(cls, value: V, now: float, ttl: float) -> CacheEntry[V]:
        return cls(value=value, inserted_at=now, ttl=ttl, last_used_at=now)

    def is_expired(self, now: float) -> bool:
        return now - self.inserted_at >= self.ttl

    def expires_in(self, now: float) -> float:
        """Seconds until expiry, floored at zero."""
        return max(0.0, self.inserted_at + self.ttl - now)

    def touch(self, now: float) -> None:
        self.last_used_at = now
