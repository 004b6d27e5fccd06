"""
Cache Service Abstract Base Class

Defines the key/value contract used by the cache-aside read path.
Both MockCacheService and RedisCacheService implement it, so handlers
behave identically whichever backend the lifespan builds.

Failure policy:
    Cache operations never raise. A failing backend is logged and
    treated as a miss (reads) or a no-op (writes and deletes), so the
    cache can only ever affect latency, never response correctness.

Version: 1.0.0
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class CacheKeys:
    """Key builders for every cached representation."""

    @staticmethod
    def public_menu(slug: str) -> str:
        return f"menu:public:{slug}"

    @staticmethod
    def menu_categories(menu_id: str) -> str:
        return f"menu:categories:{menu_id}"

    @staticmethod
    def menu_products(menu_id: str) -> str:
        return f"menu:products:{menu_id}"

    @staticmethod
    def analytics(menu_id: str, date: str) -> str:
        return f"analytics:{menu_id}:{date}"


class CacheTTL:
    """Time-to-live values in seconds."""
    PUBLIC_MENU = 300


class BaseCacheService(ABC):
    """
    Abstract base class for cache backends.

    Values are JSON-compatible Python objects (dicts, lists, scalars).
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the backend name (e.g., "memory", "redis")."""
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on miss or backend failure."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int = CacheTTL.PUBLIC_MENU) -> bool:
        """Store a value with an expiry. Returns False on backend failure."""
        pass

    @abstractmethod
    async def delete(self, *keys: str) -> bool:
        pass

    @abstractmethod
    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern, returning how many went."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass

    async def close(self) -> None:
        """Release backend connections."""
        return None

    async def get_or_set(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[Optional[Any]]],
        ttl: int = CacheTTL.PUBLIC_MENU,
        schedule: Optional[Callable[..., Any]] = None,
    ) -> Optional[Any]:
        """
        Cache-aside read.

        Returns the cached value on hit. On miss, awaits ``fetcher`` and,
        when it produced a value, stores it. None results are never cached.

        Args:
            key: Cache key
            fetcher: Coroutine factory that loads the value from the store
            ttl: Expiry for the stored value
            schedule: Optional callable used to defer the write (for example
                ``BackgroundTasks.add_task``); the write is awaited inline
                when omitted
        """
        cached = await self.get(key)
        if cached is not None:
            logger.debug(f"Cache hit: {key}")
            return cached

        logger.debug(f"Cache miss: {key}")
        value = await fetcher()
        if value is not None:
            if schedule is not None:
                schedule(self.set, key, value, ttl)
            else:
                await self.set(key, value, ttl)
        return value

    async def invalidate_menu(self, menu_id: str, slug: Optional[str] = None) -> None:
        """Drop every cached representation of a menu."""
        keys = [CacheKeys.menu_categories(menu_id), CacheKeys.menu_products(menu_id)]
        if slug:
            keys.append(CacheKeys.public_menu(slug))
        await self.delete(*keys)
        logger.debug(f"Invalidated cache for menu {menu_id}")
