"""
In-memory TTL cache for normalized market data.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from shared.logging import get_logger

from ..ratelimit.clock import Clock, MonotonicClock


DEFAULT_TTL_SECONDS = 300.0


@dataclass
class CacheEntry:
    """A cached value together with the time it was stored."""

    key: str
    value: Any
    stored_at: float


class TTLCache:
    """Key/value store whose entries stop being served after ``ttl_seconds``.

    Expired entries are removed when they are next looked up. Distinct keys
    accumulate until :meth:`clear` is called.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Optional[Clock] = None):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self.clock = clock or MonotonicClock()
        self.logger = get_logger("gateway.ttl_cache")
        self._entries: Dict[str, CacheEntry] = {}

    def lookup(self, key: str) -> Tuple[bool, Any]:
        """Return ``(True, value)`` for a fresh entry, ``(False, None)`` otherwise."""
        entry = self._entries.get(key)
        if entry is None:
            return False, None

        age = self.clock.now() - entry.stored_at
        if age >= self.ttl_seconds:
            del self._entries[key]
            self.logger.debug("Evicted expired cache entry", key=key, age_seconds=round(age, 3))
            return False, None

        return True, entry.value

    def get(self, key: str, default: Any = None) -> Any:
        hit, value = self.lookup(key)
        return value if hit else default

    def set(self, key: str, value: Any) -> CacheEntry:
        entry = CacheEntry(key=key, value=value, stored_at=self.clock.now())
        self._entries[key] = entry
        return entry

    def clear(self) -> int:
        """Evict every entry. Returns the number of entries removed."""
        count = len(self._entries)
        self._entries.clear()
        return count

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
