from typing import Callable, Dict, Any, Optional
import asyncio
import time


class TTLCache:
    """In-memory cache store with TTL support and an injectable clock.

    ``clock`` returns monotonic seconds; tests pass a fake to move time.
    """

    def __init__(self, default_ttl: float = 300, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self.clock = clock
        self.cache: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Set a value in cache with TTL"""

        async with self._lock:
            self.cache[key] = {
                "value": value,
                "expires_at": self.clock() + (self.default_ttl if ttl is None else ttl)
            }

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache if not expired"""

        async with self._lock:
            entry = self.cache.get(key)
            if entry is None:
                return None

            if self.clock() >= entry["expires_at"]:
                del self.cache[key]
                return None

            return entry["value"]

    async def delete(self, key: str) -> bool:
        """Delete a key from cache"""

        async with self._lock:
            return self.cache.pop(key, None) is not None

    async def clear(self) -> None:
        async with self._lock:
            self.cache.clear()

    async def clear_expired(self) -> int:
        """Clear expired entries and return count"""

        async with self._lock:
            now = self.clock()
            expired_keys = [
                key for key, entry in self.cache.items()
                if now >= entry["expires_at"]
            ]

            for key in expired_keys:
                del self.cache[key]

            return len(expired_keys)

    async def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics"""

        async with self._lock:
            now = self.clock()
            active_count = sum(
                1 for entry in self.cache.values()
                if now < entry["expires_at"]
            )

            return {
                "total_keys": len(self.cache),
                "active_keys": active_count,
                "expired_keys": len(self.cache) - active_count
            }
