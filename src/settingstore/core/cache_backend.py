"""
Cache backend interface for settingstore.

Defines the CacheBackend protocol used to front the settings table, with two
interchangeable implementations:
- RedisCacheBackend: shared cache for multi-process / multi-node deployments
- InMemoryCacheBackend: per-process cache for single-node or development use

Backend selection is automatic based on SETTINGSTORE_REDIS_URL.

Example usage:
    from settingstore.core.cache_backend import get_cache_backend

    backend = await get_cache_backend()
    await backend.set("settings.general.site_name", '{"site_name": "Acme"}', ttl_seconds=300)
    raw = await backend.get("settings.general.site_name")
"""

import logging
import threading
import time
from typing import Any, Dict, Optional, Protocol, Tuple, runtime_checkable

import redis.asyncio as redis

logger = logging.getLogger(__name__)

# Global cache backend instance (singleton)
_cache_backend: Optional["CacheBackend"] = None

# Global Redis client instance (internal use only)
_redis_client: Optional[Any] = None


class CacheError(Exception):
    """Base exception for cache operations.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class CacheConnectionError(CacheError):
    """Raised when the cache backend is unreachable."""
    pass


class CacheOperationError(CacheError):
    """Raised when the backend was reachable but the operation failed."""
    pass


class CacheKeyError(CacheError):
    """Raised when the provided cache key is invalid (e.g. empty)."""
    pass


@runtime_checkable
class CacheBackend(Protocol):
    """Protocol defining the cache backend interface.

    Keys and values are strings; callers serialize structured values (the
    settings cache stores JSON). Implementations must be safe for
    concurrent use.
    """

    async def get(self, key: str) -> Optional[str]:
        """Return the cached value, or None if missing or expired.

        Raises:
            CacheConnectionError: If the cache backend is unreachable.
            CacheKeyError: If the key is empty.
        """
        ...

    async def set(
        self,
        key: str,
        value: str,
        ttl_seconds: Optional[int] = None,
    ) -> bool:
        """Store a value.

        Args:
            key: The cache key. Must be a non-empty string.
            value: The value to store.
            ttl_seconds: Time-to-live in seconds. None stores the value
                without expiry; 0 or negative deletes the key.

        Raises:
            CacheConnectionError: If the cache backend is unreachable.
            CacheKeyError: If the key is empty.
        """
        ...

    async def delete(self, key: str) -> bool:
        """Delete a key. Returns True if it existed."""
        ...

    async def exists(self, key: str) -> bool:
        """Return True if the key exists and has not expired."""
        ...

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        """Set a new TTL on an existing key.

        Returns:
            True if the TTL was set, False if the key doesn't exist.

        Raises:
            ValueError: If ttl_seconds is not positive.
        """
        ...


class InMemoryCacheBackend:
    """Process-local cache with TTL support.

    Entries are held as ``(value, expiry)`` pairs guarded by an RLock.
    Expired entries are dropped lazily on access and by a periodic sweep.
    Nothing is shared across processes, so a ``set`` in one worker does not
    invalidate another worker's copy; use Redis when running more than one
    process.
    """

    def __init__(self, cleanup_interval_seconds: int = 60):
        """
        Args:
            cleanup_interval_seconds: Interval between sweeps of expired
                entries. 0 disables the sweep (lazy expiry only).
        """
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lock = threading.RLock()
        self._cleanup_interval = cleanup_interval_seconds
        self._last_cleanup = time.time()

    @staticmethod
    def _check_key(key: str) -> None:
        if not key:
            raise CacheKeyError("Cache key cannot be empty")

    @staticmethod
    def _is_expired(expiry: Optional[float]) -> bool:
        return expiry is not None and time.time() > expiry

    def _maybe_cleanup(self) -> None:
        """Sweep expired entries if the interval has passed. Caller holds the lock."""
        if self._cleanup_interval <= 0:
            return

        now = time.time()
        if now - self._last_cleanup < self._cleanup_interval:
            return
        self._last_cleanup = now

        expired_keys = [key for key, (_, expiry) in self._data.items() if self._is_expired(expiry)]
        for key in expired_keys:
            del self._data[key]

    def _live_entry(self, key: str) -> Optional[Tuple[str, Optional[float]]]:
        """Return the entry for key, dropping it if expired. Caller holds the lock."""
        entry = self._data.get(key)
        if entry is None:
            return None
        if self._is_expired(entry[1]):
            del self._data[key]
            return None
        return entry

    async def get(self, key: str) -> Optional[str]:
        self._check_key(key)
        with self._lock:
            self._maybe_cleanup()
            entry = self._live_entry(key)
            return entry[0] if entry is not None else None

    async def set(
        self,
        key: str,
        value: str,
        ttl_seconds: Optional[int] = None,
    ) -> bool:
        self._check_key(key)
        with self._lock:
            self._maybe_cleanup()

            if ttl_seconds is not None and ttl_seconds <= 0:
                self._data.pop(key, None)
                return True

            expiry = time.time() + ttl_seconds if ttl_seconds is not None else None
            self._data[key] = (value, expiry)
            return True

    async def delete(self, key: str) -> bool:
        self._check_key(key)
        with self._lock:
            self._maybe_cleanup()
            if self._live_entry(key) is None:
                return False
            del self._data[key]
            return True

    async def exists(self, key: str) -> bool:
        self._check_key(key)
        with self._lock:
            self._maybe_cleanup()
            return self._live_entry(key) is not None

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        self._check_key(key)
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        with self._lock:
            self._maybe_cleanup()
            entry = self._live_entry(key)
            if entry is None:
                return False
            self._data[key] = (entry[0], time.time() + ttl_seconds)
            return True

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._data.clear()


class RedisCacheBackend:
    """Redis-backed cache implementation.

    Wraps an async Redis client created with ``decode_responses=True``.
    Client failures are logged and re-raised as CacheConnectionError.
    Use ``get_cache_backend()`` rather than constructing this directly.
    """

    def __init__(self, redis_client: Any):
        self._client = redis_client

    @staticmethod
    def _check_key(key: str) -> None:
        if not key:
            raise CacheKeyError("Cache key cannot be empty")

    async def get(self, key: str) -> Optional[str]:
        self._check_key(key)
        try:
            return await self._client.get(key)
        except Exception as e:
            logger.error(f"Redis GET failed for key '{key}': {e}")
            raise CacheConnectionError(
                f"Failed to get key '{key}' from Redis",
                details={"key": key, "error": str(e)},
            ) from e

    async def set(
        self,
        key: str,
        value: str,
        ttl_seconds: Optional[int] = None,
    ) -> bool:
        self._check_key(key)
        try:
            if ttl_seconds is not None and ttl_seconds <= 0:
                await self._client.delete(key)
                return True

            if ttl_seconds is not None:
                # setex sets value and expiry atomically
                await self._client.setex(key, ttl_seconds, value)
            else:
                await self._client.set(key, value)
            return True
        except Exception as e:
            logger.error(f"Redis SET failed for key '{key}': {e}")
            raise CacheConnectionError(
                f"Failed to set key '{key}' in Redis",
                details={"key": key, "error": str(e)},
            ) from e

    async def delete(self, key: str) -> bool:
        self._check_key(key)
        try:
            # DEL returns the number of keys removed
            return await self._client.delete(key) > 0
        except Exception as e:
            logger.error(f"Redis DELETE failed for key '{key}': {e}")
            raise CacheConnectionError(
                f"Failed to delete key '{key}' from Redis",
                details={"key": key, "error": str(e)},
            ) from e

    async def exists(self, key: str) -> bool:
        self._check_key(key)
        try:
            return await self._client.exists(key) > 0
        except Exception as e:
            logger.error(f"Redis EXISTS failed for key '{key}': {e}")
            raise CacheConnectionError(
                f"Failed to check existence of key '{key}' in Redis",
                details={"key": key, "error": str(e)},
            ) from e

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        self._check_key(key)
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        try:
            return bool(await self._client.expire(key, ttl_seconds))
        except Exception as e:
            logger.error(f"Redis EXPIRE failed for key '{key}': {e}")
            raise CacheConnectionError(
                f"Failed to set expiration for key '{key}' in Redis",
                details={"key": key, "ttl_seconds": ttl_seconds, "error": str(e)},
            ) from e


# =============================================================================
# Redis Client Management (Internal)
# =============================================================================


async def _create_redis_client() -> Any:
    """Create a Redis client and verify it with PING.

    Raises:
        CacheConnectionError: If Redis connection fails.
    """
    from .config import get_settings_instance

    settings = get_settings_instance()

    try:
        client = redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_timeout=settings.redis_socket_timeout,
            socket_connect_timeout=settings.redis_connection_timeout,
        )
        await client.ping()
        logger.info("Redis client initialized successfully", extra={
            "connection_timeout": settings.redis_connection_timeout,
            "socket_timeout": settings.redis_socket_timeout,
        })
        return client

    except Exception as e:
        logger.warning(f"Redis connection failed: {e}")
        raise CacheConnectionError(
            f"Redis connection failed: {e}",
            details={"error": str(e)},
        ) from e


async def _get_redis_client() -> Any:
    global _redis_client

    if _redis_client is None:
        _redis_client = await _create_redis_client()

    return _redis_client


# =============================================================================
# Cache Backend Factory
# =============================================================================


async def get_cache_backend() -> CacheBackend:
    """Get the configured cache backend (singleton).

    Selection logic:
    1. SETTINGSTORE_REDIS_URL unset -> InMemoryCacheBackend
    2. Redis configured and reachable -> RedisCacheBackend
    3. Redis configured but unreachable -> CacheConnectionError if
       redis_required or fallback disabled, else InMemoryCacheBackend

    Raises:
        CacheConnectionError: If Redis is required but unavailable.
    """
    global _cache_backend

    if _cache_backend is not None:
        return _cache_backend

    from .config import get_settings_instance

    settings = get_settings_instance()

    if not settings.redis_enabled:
        if settings.redis_required:
            raise CacheConnectionError("Redis is required but SETTINGSTORE_REDIS_URL is not set")
        logger.info("No Redis URL configured, using InMemoryCacheBackend")
        _cache_backend = InMemoryCacheBackend()
        return _cache_backend

    try:
        redis_client = await _get_redis_client()
        _cache_backend = RedisCacheBackend(redis_client)
        logger.info("Using RedisCacheBackend")
        return _cache_backend

    except CacheConnectionError as e:
        if settings.redis_required:
            logger.error("Redis is required but connection failed", extra={"error": str(e)})
            raise CacheConnectionError(
                f"Redis is required but connection failed: {e}"
            ) from e

        if not settings.redis_fallback_enabled:
            logger.error("Redis fallback is disabled and Redis connection failed", extra={"error": str(e)})
            raise CacheConnectionError(
                f"Redis connection failed and fallback is disabled: {e}"
            ) from e

        logger.warning(
            "Redis connection failed, falling back to InMemoryCacheBackend",
            extra={"error": str(e)},
        )
        _cache_backend = InMemoryCacheBackend()
        return _cache_backend


def reset_cache_backend() -> None:
    """Reset the cache backend singleton (for testing only)."""
    global _cache_backend, _redis_client
    _cache_backend = None
    _redis_client = None
