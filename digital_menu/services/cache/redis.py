"""
Redis Cache Service Implementation

Production implementation over ``redis.asyncio``. Works against a
self-hosted Redis or a hosted Upstash database (``rediss://`` URL).
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - REDIS_URL must be set in environment

Version: 1.0.0
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from digital_menu.services.cache.base import BaseCacheService, CacheTTL

logger = logging.getLogger(__name__)


class RedisCacheService(BaseCacheService):
    """
    Redis-backed cache.

    Values are JSON-encoded strings with a per-key expiry (``SET EX``).
    Pattern deletes walk the keyspace with ``SCAN`` rather than ``KEYS``.
    """

    def __init__(self, redis_url: str, socket_timeout: float = 2.0):
        """
        Args:
            redis_url: Connection URL

        Raises:
            ValueError: If no URL is configured
        """
        if not redis_url:
            raise ValueError(
                "REDIS_URL is required for production mode. "
                "Set it in your .env file or environment variables."
            )
        self._client = aioredis.Redis.from_url(
            redis_url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        logger.info("RedisCacheService initialized")

    @property
    def provider_name(self) -> str:
        return "redis"

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self._client.get(key)
            return json.loads(raw) if raw is not None else None
        except (RedisError, ValueError) as e:
            logger.error(f"Redis get error for {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int = CacheTTL.PUBLIC_MENU) -> bool:
        try:
            await self._client.set(key, json.dumps(value), ex=ttl)
            return True
        except (RedisError, TypeError, ValueError) as e:
            logger.error(f"Redis set error for {key}: {e}")
            return False

    async def delete(self, *keys: str) -> bool:
        if not keys:
            return True
        try:
            await self._client.delete(*keys)
            return True
        except RedisError as e:
            logger.error(f"Redis delete error for {keys}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        try:
            keys = [key async for key in self._client.scan_iter(match=pattern, count=100)]
            if keys:
                await self._client.delete(*keys)
            return len(keys)
        except RedisError as e:
            logger.error(f"Redis delete pattern error for {pattern}: {e}")
            return 0

    async def health_check(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        await self._client.aclose()
