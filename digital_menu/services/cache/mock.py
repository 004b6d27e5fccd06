"""
Mock Cache Service Implementation

In-process dictionary with per-key expiry. Used in development mode
(ENV_MODE=development) and by the test suite, so the cache-aside path
runs without a Redis server.

Behavior:
    - Values are stored as JSON strings, mirroring what Redis holds
    - Expired entries are dropped lazily on read
    - ``failure_rate`` simulates an unreachable backend

Version: 1.0.0
"""

import fnmatch
import json
import logging
import random
import time
from typing import Any, Optional

from digital_menu.services.cache.base import BaseCacheService, CacheTTL

logger = logging.getLogger(__name__)


class CacheUnavailable(ConnectionError):
    """Simulated backend outage."""


class MockCacheService(BaseCacheService):
    """
    In-memory cache backend.

    Attributes:
        failure_rate: Probability that an operation hits a simulated outage
    """

    def __init__(self, failure_rate: float = 0.0):
        self.failure_rate = failure_rate
        self._store: dict[str, tuple[str, float]] = {}
        logger.info(f"MockCacheService initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "memory"

    def _maybe_fail(self) -> None:
        if self.failure_rate and random.random() < self.failure_rate:
            raise CacheUnavailable("Simulated cache outage")

    def keys(self) -> list[str]:
        """Live keys, for inspection in tests and the dev console."""
        now = time.monotonic()
        return [k for k, (_, expires) in self._store.items() if expires > now]

    async def get(self, key: str) -> Optional[Any]:
        try:
            self._maybe_fail()
        except CacheUnavailable as e:
            logger.error(f"Cache get error for {key}: {e}")
            return None

        entry = self._store.get(key)
        if entry is None:
            return None
        raw, expires = entry
        if expires <= time.monotonic():
            self._store.pop(key, None)
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int = CacheTTL.PUBLIC_MENU) -> bool:
        try:
            self._maybe_fail()
            raw = json.dumps(value)
        except (CacheUnavailable, TypeError, ValueError) as e:
            logger.error(f"Cache set error for {key}: {e}")
            return False

        self._store[key] = (raw, time.monotonic() + ttl)
        return True

    async def delete(self, *keys: str) -> bool:
        try:
            self._maybe_fail()
        except CacheUnavailable as e:
            logger.error(f"Cache delete error for {keys}: {e}")
            return False

        for key in keys:
            self._store.pop(key, None)
        return True

    async def delete_pattern(self, pattern: str) -> int:
        try:
            self._maybe_fail()
        except CacheUnavailable as e:
            logger.error(f"Cache delete pattern error for {pattern}: {e}")
            return 0

        matched = [k for k in self._store if fnmatch.fnmatchcase(k, pattern)]
        for key in matched:
            del self._store[key]
        return len(matched)

    async def health_check(self) -> bool:
        return self.failure_rate < 1.0
