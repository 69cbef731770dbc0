"""
Cache strategies using Strategy Pattern.
Allows switching between different cache backends (Redis, In-Memory, Null).
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

from redis.exceptions import RedisError

from linksprint.exceptions import CacheUnavailableError


class CacheStrategy(ABC):
    """
    Abstract base class for cache strategies.

    This is the Strategy Pattern interface - allows multiple cache implementations
    without changing the service layer code.

    All methods are async because cache operations involve I/O (network for Redis).
    Transport failures raise CacheUnavailableError; callers decide whether
    that is fatal (it never is in the URL service).
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found / expired
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds; None means no expiry

        Returns:
            True if stored
        """
        pass

    @abstractmethod
    async def increment(self, key: str) -> int:
        """
        Atomically increment an integer counter, creating it at 0 first.

        Returns:
            The counter value after incrementing
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete key from cache.

        Returns:
            True if deleted, False if key didn't exist
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if key exists (and has not expired)."""
        pass

    @abstractmethod
    async def clear(self) -> bool:
        """Clear all cache entries."""
        pass

    async def close(self) -> None:
        """Release connections. Backends without any keep the default."""
        return None


class RedisCache(CacheStrategy):
    """
    Redis cache implementation on the asyncio client.

    Every call is bounded by `timeout` seconds. Timeouts and RedisError
    both surface as CacheUnavailableError.
    """

    def __init__(self, redis_client, timeout: float = 2.0):
        """
        Args:
            redis_client: redis.asyncio.Redis instance (decode_responses=True)
            timeout: Seconds allowed per operation
        """
        self.redis = redis_client
        self.timeout = timeout

    async def _call(self, operation: str, awaitable):
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise CacheUnavailableError(f"Redis {operation} timed out after {self.timeout}s") from e
        except RedisError as e:
            raise CacheUnavailableError(f"Redis {operation} failed: {e}") from e

    async def get(self, key: str) -> Optional[str]:
        return await self._call("get", self.redis.get(key))

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        return bool(await self._call("set", self.redis.set(key, value, ex=ttl)))

    async def increment(self, key: str) -> int:
        return int(await self._call("incr", self.redis.incr(key)))

    async def delete(self, key: str) -> bool:
        return bool(await self._call("delete", self.redis.delete(key)))

    async def exists(self, key: str) -> bool:
        return bool(await self._call("exists", self.redis.exists(key)))

    async def clear(self) -> bool:
        """Clear the whole Redis database (use with caution!)"""
        await self._call("flushdb", self.redis.flushdb())
        return True

    async def close(self) -> None:
        await self.redis.aclose()


class InMemoryCache(CacheStrategy):
    """
    In-memory cache implementation using Python dict.

    Good for development and testing: not shared between processes and
    lost on restart. TTLs are enforced lazily, an expired key is dropped
    the next time it is read.

    Counters are stored as decimal strings, the same way Redis returns them.
    """

    def __init__(self, clock=time.monotonic):
        self._cache: Dict[str, Tuple[str, Optional[float]]] = {}
        self._clock = clock

    def _live_value(self, key: str) -> Optional[str]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._cache[key]
            return None
        return value

    async def get(self, key: str) -> Optional[str]:
        return self._live_value(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        expires_at = self._clock() + ttl if ttl else None
        self._cache[key] = (str(value), expires_at)
        return True

    async def increment(self, key: str) -> int:
        current = self._live_value(key)
        new_value = int(current or 0) + 1
        # INCR keeps an existing TTL, so do we
        expires_at = self._cache[key][1] if current is not None else None
        self._cache[key] = (str(new_value), expires_at)
        return new_value

    async def delete(self, key: str) -> bool:
        if self._live_value(key) is None:
            return False
        del self._cache[key]
        return True

    async def exists(self, key: str) -> bool:
        return self._live_value(key) is not None

    async def clear(self) -> bool:
        self._cache.clear()
        return True


class NullCache(CacheStrategy):
    """
    Null Object Pattern - cache that does nothing.

    Every read misses, so every resolve goes to the durable store.
    """

    async def get(self, key: str) -> Optional[str]:
        return None

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        return True

    async def increment(self, key: str) -> int:
        return 0

    async def delete(self, key: str) -> bool:
        return False

    async def exists(self, key: str) -> bool:
        return False

    async def clear(self) -> bool:
        return True
