"""
Settings caching for settingstore.

Provides the get-or-compute and invalidate operations the settings store
needs on top of a string-valued CacheBackend. Cached values are JSON.
"""

import json
from typing import Any, Awaitable, Callable, Optional

from .cache_backend import CacheBackend, CacheOperationError
from .logging import get_logger

logger = get_logger(__name__)

Compute = Callable[[], Awaitable[Any]]


class SettingsCache:
    """Cache-through helper for per-setting cache entries."""

    def __init__(self, cache_backend: CacheBackend):
        self._backend = cache_backend

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    async def remember(self, key: str, ttl_seconds: Optional[int], compute: Compute) -> Any:
        """Return the cached value for key, computing and storing it on a miss.

        ``ttl_seconds`` of None stores the computed value without expiry.
        """
        raw = await self._backend.get(key)
        if raw is not None:
            logger.debug(f"Cache hit for setting: {key}")
            return self._decode(key, raw)

        logger.debug(f"Cache miss for setting: {key}")
        value = await compute()
        await self._backend.set(key, json.dumps(value, ensure_ascii=False), ttl_seconds=ttl_seconds)
        return value

    async def remember_forever(self, key: str, compute: Compute) -> Any:
        """Like remember(), but the stored value never expires."""
        return await self.remember(key, None, compute)

    async def forget(self, key: str) -> bool:
        """Invalidate a cache entry. Returns True if an entry was removed."""
        removed = await self._backend.delete(key)
        logger.debug(f"Forgot cached setting: {key}", extra={"removed": removed})
        return removed

    @staticmethod
    def _decode(key: str, raw: str) -> Any:
        try:
            return json.loads(raw)
        except ValueError as e:
            raise CacheOperationError(
                f"Cached value for key '{key}' is not valid JSON",
                details={"key": key, "error": str(e)},
            ) from e
