from typing import Dict, List, Any, Optional
import asyncio
import json
import structlog

from railroad.domain.collaborators import ConfigurationSource
from railroad.domain.errors import ConfigurationKeyError
from railroad.domain.memory.cache_store import TTLCache

logger = structlog.get_logger(__name__)


class InMemoryConfigurationStore:
    """Backing key/value store for configuration; values are kept as strings"""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self.values: Dict[str, str] = {}
        self._lock = asyncio.Lock()
        for key, value in (initial or {}).items():
            self.values[key] = serialize_value(value)

    async def read(self, key: str) -> str:
        async with self._lock:
            if key not in self.values:
                raise ConfigurationKeyError(key)
            return self.values[key]

    async def write(self, key: str, value: str) -> None:
        async with self._lock:
            self.values[key] = value

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self.values.pop(key, None) is not None

    async def keys(self) -> List[str]:
        async with self._lock:
            return sorted(self.values)


def serialize_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


def parse_value(raw: str) -> Any:
    """JSON-decode a stored value, falling back to the raw string"""
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return raw


class ConfigurationService(ConfigurationSource):
    """Configuration lookups through a TTL cache.

    Lookups never raise: a missing key or a failing store yields the
    caller's default.
    """

    def __init__(self, store: InMemoryConfigurationStore, cache: Optional[TTLCache] = None):
        self.store = store
        self.cache = cache or TTLCache(default_ttl=300)

    async def get(self, key: str, default: Any = None) -> Any:
        try:
            raw = await self._get_raw(key)
        except ConfigurationKeyError:
            return default
        except Exception as exc:
            logger.warning("Configuration lookup failed", key=key, error=str(exc))
            return default
        return parse_value(raw)

    async def get_list(self, key: str, default: List[Any]) -> List[Any]:
        """Return a list value; comma-separated strings are split"""
        value = await self.get(key, default)
        if isinstance(value, list):
            return value
        if isinstance(value, str):
            items = [item.strip() for item in value.split(",") if item.strip()]
            return items or default
        return default

    async def get_number(self, key: str, default: float) -> float:
        value = await self.get(key, default)
        if isinstance(value, bool):
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    async def get_bool(self, key: str, default: bool) -> bool:
        value = await self.get(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes")
        return default

    async def set(self, key: str, value: Any) -> None:
        """Write through to the store and refresh the cache"""
        raw = serialize_value(value)
        await self.store.write(key, raw)
        await self.cache.set(key, raw)

    async def delete(self, key: str) -> bool:
        await self.cache.delete(key)
        return await self.store.delete(key)

    async def preload(self, keys: List[str]) -> int:
        """Warm the cache for ``keys``; returns how many were found"""
        loaded = 0
        for key in keys:
            try:
                await self._get_raw(key)
            except ConfigurationKeyError:
                continue
            loaded += 1
        return loaded

    async def clear_cache(self) -> None:
        await self.cache.clear()

    async def _get_raw(self, key: str) -> str:
        cached = await self.cache.get(key)
        if cached is not None:
            return cached

        raw = await self.store.read(key)
        await self.cache.set(key, raw)
        return raw
