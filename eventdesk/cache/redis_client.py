"""
Async Redis client used by the shared event list cache.

Values are stored as JSON. Redis being down degrades to cache misses: every
operation logs the failure and reports it through its return value instead
of raising into the request.
"""
import json
from typing import Optional, Any
from redis import asyncio as aioredis
from redis.exceptions import RedisError
from eventdesk.core.config import settings
from eventdesk.core.logging import logger


class RedisCache:
    """Lazily connected JSON cache over ``redis.asyncio``."""

    def __init__(self, url: Optional[str] = None, client: Optional[aioredis.Redis] = None):
        self._url = url or settings.REDIS_URL
        self._client = client

    def _get_client(self) -> aioredis.Redis:
        if self._client is None:
            self._client = aioredis.from_url(self._url, decode_responses=True, max_connections=20)
            logger.info("Redis client created")
        return self._client

    async def get(self, key: str) -> Optional[Any]:
        """
        Returns:
            The decoded value, or None on a miss or when Redis is unavailable
        """
        try:
            value = await self._get_client().get(key)
        except RedisError as e:
            logger.error(f"Redis GET error for key {key}: {e}")
            return None
        if value is None:
            return None
        try:
            return json.loads(value)
        except ValueError:
            logger.warning(f"Discarding undecodable cache entry {key}")
            return None

    async def set(self, key: str, value: Any, expire: int = 300) -> bool:
        """Store ``value`` as JSON for ``expire`` seconds."""
        try:
            await self._get_client().setex(key, expire, json.dumps(value, default=str))
            return True
        except RedisError as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        try:
            await self._get_client().delete(key)
            return True
        except RedisError as e:
            logger.error(f"Redis DELETE error for key {key}: {e}")
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Redis client closed")
