"""Cache adapters: Redis (preferred) and an in-process fallback.

Backend selection happens once in ``create_cache``; there is no failover
between backends afterwards. Every operation swallows backend errors so a
cache problem never breaks the caller's data path.
"""

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import redis.asyncio as aioredis

from jungle_coach.config.settings import Settings
from jungle_coach.core.ports import CachePort

logger = logging.getLogger(__name__)

CACHE_SERVICE_PREFIX = "lol-coach"
MEMORY_SWEEP_THRESHOLD = 100
DEFAULT_TTL_SECONDS = 300


def cache_key(type_: str, identifier: str, extra: str | None = None) -> str:
    """Namespaced key: ``{service}:{type}:{identifier}[:{extra}]``."""
    base = f"{CACHE_SERVICE_PREFIX}:{type_}:{identifier}"
    return f"{base}:{extra}" if extra else base


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(slots=True)
class CacheEntry:
    value: Any
    expires_at_ms: int


class MemoryCacheAdapter(CachePort):
    """In-process dict cache with lazy expiry and a bulk sweep above 100 entries."""

    def __init__(self, clock_ms: Callable[[], int] = _now_ms) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._clock_ms = clock_ms

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Any | None:
        try:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at_ms > self._clock_ms():
                return entry.value
            del self._entries[key]
            return None
        except Exception as e:
            logger.error(f"Memory cache get error for {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        try:
            ttl_seconds = ttl if ttl is not None else DEFAULT_TTL_SECONDS
            self._entries[key] = CacheEntry(value, self._clock_ms() + ttl_seconds * 1000)
            if len(self._entries) > MEMORY_SWEEP_THRESHOLD:
                self._sweep()
            return True
        except Exception as e:
            logger.error(f"Memory cache set error for {key}: {e}")
            return False

    def _sweep(self) -> None:
        now = self._clock_ms()
        expired = [k for k, entry in self._entries.items() if entry.expires_at_ms <= now]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug(f"Memory cache swept {len(expired)} expired entries")

    async def delete(self, key: str) -> bool:
        self._entries.pop(key, None)
        return True

    async def flush(self) -> bool:
        self._entries.clear()
        return True


class RedisCacheAdapter(CachePort):
    """Redis cache adapter using the async redis client."""

    def __init__(self, redis_url: str) -> None:
        self.redis_url = redis_url
        self._client: Any = None  # aioredis.Redis (untyped library)

    async def connect(self) -> None:
        """Connect and ping; raises when Redis is unreachable."""
        if self._client:
            logger.warning("Redis client already connected")
            return

        client = aioredis.from_url(
            self.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        try:
            await client.ping()
        except Exception:
            await client.aclose()
            raise
        self._client = client
        logger.info("Redis client connected")

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Redis client disconnected")

    async def get(self, key: str) -> Any | None:
        if not self._client:
            logger.error("Redis client not connected")
            return None

        try:
            value = await self._client.get(key)
            if value is None:
                return None
            return json.loads(value)
        except Exception as e:
            logger.error(f"Error getting key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        if not self._client:
            logger.error("Redis client not connected")
            return False

        try:
            await self._client.setex(key, ttl if ttl is not None else DEFAULT_TTL_SECONDS, json.dumps(value))
            return True
        except Exception as e:
            logger.error(f"Error setting key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        if not self._client:
            logger.error("Redis client not connected")
            return False

        try:
            await self._client.delete(key)
            return True
        except Exception as e:
            logger.error(f"Error deleting key {key}: {e}")
            return False

    async def flush(self) -> bool:
        if not self._client:
            return False

        try:
            await self._client.flushdb()
            return True
        except Exception as e:
            logger.error(f"Error flushing cache: {e}")
            return False

    async def health_check(self) -> bool:
        if not self._client:
            return False

        try:
            await self._client.ping()
            return True
        except Exception:
            return False


async def create_cache(settings: Settings) -> CachePort:
    """Pick the cache backend once, at process start."""
    if not settings.redis_url:
        logger.warning("No REDIS_URL configured, using in-process cache")
        return MemoryCacheAdapter()

    adapter = RedisCacheAdapter(settings.redis_url)
    try:
        await adapter.connect()
    except Exception as e:
        logger.error(f"Redis connection failed, falling back to in-process cache: {e}")
        return MemoryCacheAdapter()
    return adapter
