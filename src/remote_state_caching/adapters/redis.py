"""Redis cache store."""

from __future__ import annotations

from typing import Any

from remote_state_caching.duration import parse_ttl
from remote_state_caching.types import Duration


class AsyncRedisCache:
    """Async Redis cache store.

    Values must already be serialized (``str`` or ``bytes``); the default
    value serialization of remote-state caching produces JSON text.
    """

    def __init__(
        self,
        client: Any,  # redis.asyncio.Redis
        *,
        prefix: str = "rsc",
        default_ttl: Duration | None = None,
    ) -> None:
        self._client = client
        self._prefix = prefix
        self._ttl_ms = parse_ttl(default_ttl)

    def _cache_key(self, key: str) -> str:
        """Generate full Redis key for a cache entry."""
        return f"{self._prefix}:cache:{key}"

    def _strip(self, redis_key: bytes | str) -> str:
        if isinstance(redis_key, bytes):
            redis_key = redis_key.decode("utf-8")
        return redis_key[len(self._cache_key("")) :]

    async def get(self, key: str) -> str | None:
        """Get a cached value by key."""
        data = await self._client.get(self._cache_key(key))
        if data is None:
            return None
        if isinstance(data, bytes):
            return data.decode("utf-8")
        return str(data)

    async def set(self, key: str, value: str | bytes) -> None:
        """Store a value, expiring it after the default TTL when one is set."""
        await self._client.set(self._cache_key(key), value, px=self._ttl_ms)

    async def delete(self, key: str) -> None:
        """Delete a cached value."""
        await self._client.delete(self._cache_key(key))

    async def keys(self) -> list[str]:
        """List every live key under this store's prefix."""
        # Use SCAN so large keyspaces are not blocked by KEYS
        found: list[str] = []
        cursor: int = 0
        pattern = f"{self._prefix}:cache:*"
        while True:
            cursor, batch = await self._client.scan(cursor, match=pattern, count=100)
            found.extend(self._strip(redis_key) for redis_key in batch)
            if cursor == 0:
                break
        # SCAN may return an element more than once
        return list(dict.fromkeys(found))

    async def clear(self) -> None:
        """Clear all cached entries under this store's prefix."""
        cursor: int = 0
        pattern = f"{self._prefix}:cache:*"
        while True:
            cursor, batch = await self._client.scan(cursor, match=pattern, count=100)
            if batch:
                await self._client.delete(*batch)
            if cursor == 0:
                break

    async def disconnect(self) -> None:
        """Close the Redis connection."""
        await self._client.aclose()
