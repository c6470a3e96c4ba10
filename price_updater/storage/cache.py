"""Key/value caches with a time-based expiry.

The discount rule set is expensive to assemble and changes rarely, so the
repository keeps it in one of these caches:

- MemoryTTLCache: per-process dictionary, used in development and tests
- RedisTTLCache: shared between workers, values stored as JSON
"""

import json
import logging
import time
from typing import Any, Callable, Optional

import redis.asyncio as redis

from price_updater.config import settings

logger = logging.getLogger(__name__)


class TTLCache:
    """Interface of a key/value cache with per-entry TTL."""

    async def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        raise NotImplementedError

    async def delete(self, key: str) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class MemoryTTLCache(TTLCache):
    """In-process cache. Expired entries are dropped when read."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        self._entries[key] = (self._clock() + ttl_seconds, value)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


class RedisTTLCache(TTLCache):
    """Redis-backed cache; values must be JSON serializable."""

    def __init__(self, redis_url: Optional[str] = None, prefix: str = "price_updater:"):
        self.redis_url = redis_url or settings.redis_url
        self.prefix = prefix
        self._redis: redis.Redis | None = None

    async def _get_redis(self) -> redis.Redis:
        """Get or create Redis connection."""
        if self._redis is None:
            self._redis = await redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._redis

    async def close(self):
        """Close Redis connection."""
        if self._redis:
            await self._redis.close()
            self._redis = None

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get(self, key: str) -> Optional[Any]:
        redis_client = await self._get_redis()
        raw = await redis_client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        redis_client = await self._get_redis()
        await redis_client.setex(self._key(key), ttl_seconds, json.dumps(value))
        logger.debug(f"Cached {key} (TTL: {ttl_seconds}s)")

    async def delete(self, key: str) -> None:
        redis_client = await self._get_redis()
        await redis_client.delete(self._key(key))


def create_cache(backend: Optional[str] = None) -> TTLCache:
    """Build the cache configured by ``rules_cache_backend``."""
    backend = (backend or settings.rules_cache_backend).lower()
    if backend == "redis":
        return RedisTTLCache(settings.redis_url)
    if backend != "memory":
        logger.warning(f"Unknown cache backend '{backend}', using in-memory cache")
    return MemoryTTLCache()
