"""In-memory cache store (async only)."""

import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass

from remote_state_caching.duration import parse_ttl
from remote_state_caching.types import Duration


@dataclass(frozen=True, slots=True)
class _Slot:
    value: object
    expires_at: float | None  # Unix timestamp ms


class AsyncMemoryCache:
    """Async in-memory cache with optional TTL and LRU eviction."""

    def __init__(
        self,
        *,
        default_ttl: Duration | None = None,
        max_items: int | None = None,
    ) -> None:
        self._slots: OrderedDict[str, _Slot] = OrderedDict()
        self._ttl_ms = parse_ttl(default_ttl)
        self._max_items = max_items
        self._lock = asyncio.Lock()

    def _is_expired(self, slot: _Slot) -> bool:
        return slot.expires_at is not None and time.time() * 1000 > slot.expires_at

    async def get(self, key: str) -> object | None:
        """Get a cached value by key."""
        async with self._lock:
            slot = self._slots.get(key)
            if slot is None:
                return None
            if self._is_expired(slot):
                del self._slots[key]
                return None
            self._slots.move_to_end(key)  # LRU touch
            return slot.value

    async def set(self, key: str, value: object) -> None:
        """Store a value, replacing any previous one."""
        expires_at = None
        if self._ttl_ms is not None:
            expires_at = time.time() * 1000 + self._ttl_ms
        async with self._lock:
            self._slots[key] = _Slot(value=value, expires_at=expires_at)
            self._slots.move_to_end(key)
            if self._max_items and len(self._slots) > self._max_items:
                self._slots.popitem(last=False)

    async def delete(self, key: str) -> None:
        """Delete a cached value."""
        async with self._lock:
            self._slots.pop(key, None)

    async def keys(self) -> list[str]:
        """List keys that currently hold a valid value, least recently used first."""
        async with self._lock:
            return [key for key, slot in self._slots.items() if not self._is_expired(slot)]

    async def clear(self) -> None:
        """Clear all cached entries."""
        async with self._lock:
            self._slots.clear()
