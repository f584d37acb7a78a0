"""
Cache for the (non-personalised) event list.

The event registry owns one of these and invalidates it on every write.
A TTL of zero disables caching entirely.
"""
import time
from typing import Any, List, Optional, Protocol

from eventdesk.cache.redis_client import RedisCache
from eventdesk.core.config import Settings, settings as default_settings
from eventdesk.core.logging import logger

EVENT_LIST_KEY = "events:list"


class EventListCache(Protocol):
    async def get(self) -> Optional[List[Any]]: ...

    async def set(self, events: List[Any]) -> None: ...

    async def invalidate(self) -> None: ...


class NullCache:
    """Never stores anything."""

    async def get(self) -> Optional[List[Any]]:
        return None

    async def set(self, events: List[Any]) -> None:
        return None

    async def invalidate(self) -> None:
        return None


class MemoryCache:
    """Process-local cache; not shared between server instances."""

    def __init__(self, ttl_seconds: int, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._data: Optional[List[Any]] = None
        self._stored_at: float = 0.0

    async def get(self) -> Optional[List[Any]]:
        if self._data is None:
            return None
        if self._clock() - self._stored_at >= self.ttl_seconds:
            self._data = None
            return None
        logger.debug(f"Cache hit for key: {EVENT_LIST_KEY}")
        return self._data

    async def set(self, events: List[Any]) -> None:
        self._data = events
        self._stored_at = self._clock()

    async def invalidate(self) -> None:
        self._data = None


class RedisEventCache:
    """Shared cache backed by Redis, safe across instances."""

    def __init__(self, ttl_seconds: int, client: Optional[RedisCache] = None, key: str = EVENT_LIST_KEY):
        self.ttl_seconds = ttl_seconds
        self.key = key
        self._client = client or RedisCache()

    async def get(self) -> Optional[List[Any]]:
        return await self._client.get(self.key)

    async def set(self, events: List[Any]) -> None:
        await self._client.set(self.key, events, expire=self.ttl_seconds)

    async def invalidate(self) -> None:
        await self._client.delete(self.key)

    async def close(self) -> None:
        await self._client.close()


def build_event_cache(settings: Settings = default_settings) -> EventListCache:
    ttl = settings.EVENT_CACHE_TTL_SECONDS
    if ttl <= 0:
        return NullCache()
    if settings.EVENT_CACHE_BACKEND == "redis":
        return RedisEventCache(ttl, RedisCache(settings.REDIS_URL))
    return MemoryCache(ttl)


# Shared by every request in this process
event_cache: EventListCache = build_event_cache()


def get_event_cache() -> EventListCache:
    return event_cache


async def close_event_cache() -> None:
    """Release the Redis connection pool, if the shared cache has one."""
    if isinstance(event_cache, RedisEventCache):
        await event_cache.close()
