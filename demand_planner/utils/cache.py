# demand_planner/utils/cache.py
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple


class TTLCache:
    """In-memory key -> (value, expiry) store with a fixed time-to-live.

    Expired entries are dropped lazily on access.
    """

    def __init__(self, ttl_seconds: float = 3600, clock: Callable[[], float] = time.monotonic):
        """Initialize the cache.

        Args:
            ttl_seconds: Lifetime of an entry in seconds
            clock: Time source returning seconds
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Get an unexpired value, or ``default``."""
        entry = self._entries.get(key)
        if entry is None:
            return default

        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return default

        return value

    def set(self, key: Hashable, value: Any, ttl_seconds: Optional[float] = None) -> None:
        """Store a value under ``key``."""
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        self._entries[key] = (value, self._clock() + ttl)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        """Remove every entry."""
        self._entries.clear()


_MISSING = object()
