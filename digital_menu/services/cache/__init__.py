"""
Cache Service Factory

Builds the cache backend for the current environment. Called once by
the application lifespan; handlers receive the instance through
``Depends(get_services)``.

Environment Switching:
    - ENV_MODE=development → MockCacheService (in-process dict)
    - ENV_MODE=staging/production → RedisCacheService (REDIS_URL)

Version: 1.0.0
"""

import logging

from digital_menu.core.config import Settings
from digital_menu.services.cache.base import BaseCacheService, CacheKeys, CacheTTL
from digital_menu.services.cache.mock import MockCacheService
from digital_menu.services.cache.redis import RedisCacheService

logger = logging.getLogger(__name__)


def create_cache_service(settings: Settings) -> BaseCacheService:
    """
    Build the configured cache backend.

    Raises:
        ValueError: If real services are requested but REDIS_URL is missing
    """
    if not settings.use_real_services:
        logger.info("Cache Service: Using MockCacheService (development mode)")
        return MockCacheService()

    logger.info(f"Cache Service: Using RedisCacheService ({settings.env_mode.value} mode)")
    return RedisCacheService(settings.redis_url)


__all__ = [
    "create_cache_service",
    "BaseCacheService",
    "CacheKeys",
    "CacheTTL",
    "MockCacheService",
    "RedisCacheService",
]
