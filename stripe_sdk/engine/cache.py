"""
Cache providers - pluggable key/value stores used to memoize cacheable calls.

Providers:
- MemoryCacheProvider: process-lifetime dict with TTL and oldest-entry eviction
- RedisCacheProvider: remote store backed by redis.asyncio

Providers may raise CacheProviderError; the SDK facade downgrades such
failures to a miss (read) or a no-op (write).
"""

import asyncio
import hashlib
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from loguru import logger
from redis.asyncio import Redis
from redis.exceptions import RedisError

from stripe_sdk.engine.errors import CacheProviderError


def fingerprint(operation: str, verb: str, url: str, payload: Any) -> str:
    """Deterministic cache key for a resolved call."""
    canonical = json.dumps(
        [operation, verb, url, payload],
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha256(canonical.encode()).hexdigest()


@dataclass(frozen=True)
class CacheEntry:
    """A single cache entry. Replaced wholesale on refresh."""

    key: str
    value: Any
    expires_at: datetime | None = None
    created_at: datetime | None = None

    def is_expired(self) -> bool:
        """Check if entry is past its TTL."""
        return self.expires_at is not None and datetime.now() >= self.expires_at


class CacheProvider(ABC):
    """Capability set every cache backend implements."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the cached value, or None on a miss."""
        ...

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: timedelta | None = None) -> None:
        """Store a value. A None ttl means provider-defined expiry."""
        ...

    @abstractmethod
    async def invalidate(self, key: str) -> None:
        """Drop a key if present."""
        ...


class MemoryCacheProvider(CacheProvider):
    """
    In-process cache provider with TTL.

    Usage:
        cache = MemoryCacheProvider(max_size=500)
        sdk = Sdk(SdkConfig(base_url=..., cache_provider=cache))
    """

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl: timedelta | None = None,
        debug: bool = False,
    ):
        self._memory: dict[str, CacheEntry] = {}
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._debug = debug
        self._lock = asyncio.Lock()
        self._stats = CacheStats()

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            entry = self._memory.get(key)
            if entry is None:
                self._stats.misses += 1
                self._log(f"MISS: {key[:16]}...")
                return None

            if entry.is_expired():
                del self._memory[key]
                self._stats.misses += 1
                self._log(f"EXPIRED: {key[:16]}...")
                return None

            self._stats.hits += 1
            self._log(f"HIT: {key[:16]}...")
            return entry.value

    async def set(self, key: str, value: Any, ttl: timedelta | None = None) -> None:
        ttl = ttl if ttl is not None else self._default_ttl
        now = datetime.now()
        entry = CacheEntry(
            key=key,
            value=value,
            expires_at=now + ttl if ttl is not None else None,
            created_at=now,
        )

        async with self._lock:
            if len(self._memory) >= self._max_size and key not in self._memory:
                self._evict_oldest()

            self._memory[key] = entry
            self._log(
                f"SET: {key[:16]}... "
                f"(TTL: {ttl.total_seconds() if ttl else 'none'})"
            )

    async def invalidate(self, key: str) -> None:
        async with self._lock:
            if self._memory.pop(key, None) is not None:
                self._log(f"INVALIDATE: {key[:16]}...")

    async def clear(self) -> None:
        """Clear all cache entries."""
        async with self._lock:
            count = len(self._memory)
            self._memory.clear()
            self._log(f"CLEAR: {count} entries removed")

    def _evict_oldest(self) -> None:
        if not self._memory:
            return

        oldest_key = min(
            self._memory.keys(),
            key=lambda k: self._memory[k].created_at or datetime.min,
        )
        del self._memory[oldest_key]
        self._stats.evictions += 1
        self._log(f"EVICT: {oldest_key[:16]}...")

    def get_stats(self) -> "CacheStats":
        """Get cache statistics."""
        self._stats.size = len(self._memory)
        self._stats.max_size = self._max_size
        return self._stats

    def _log(self, message: str) -> None:
        if self._debug:
            logger.debug(f"[MemoryCacheProvider] {message}")


class RedisCacheProvider(CacheProvider):
    """
    Cache provider backed by a shared Redis instance.

    The client is borrowed, never closed here: several SDK instances may share
    one Redis connection pool. Values are stored as JSON.

    Usage:
        from redis.asyncio import Redis

        cache = RedisCacheProvider(Redis.from_url("redis://localhost:6379/0"))
    """

    def __init__(self, client: Redis, prefix: str = "stripe_sdk:"):
        self._client = client
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self._client.get(self._key(key))
        except RedisError as e:
            raise CacheProviderError(f"Redis GET failed: {e}") from e

        if raw is None:
            return None

        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            raise CacheProviderError(f"Corrupt cache value for {key[:16]}") from e

    async def set(self, key: str, value: Any, ttl: timedelta | None = None) -> None:
        try:
            encoded = json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            raise CacheProviderError(f"Value for {key[:16]} is not cacheable") from e

        if ttl is not None and ttl <= timedelta(0):
            # Already expired: nothing to keep
            await self.invalidate(key)
            return
        px = int(ttl.total_seconds() * 1000) if ttl is not None else None
        try:
            await self._client.set(self._key(key), encoded, px=px)
        except RedisError as e:
            raise CacheProviderError(f"Redis SET failed: {e}") from e

    async def invalidate(self, key: str) -> None:
        try:
            await self._client.delete(self._key(key))
        except RedisError as e:
            raise CacheProviderError(f"Redis DELETE failed: {e}") from e


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    size: int = 0
    max_size: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "size": self.size,
            "max_size": self.max_size,
            "hit_rate": f"{self.hit_rate:.2%}",
        }
