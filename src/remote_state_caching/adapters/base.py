"""Capability contract for caches used by remote-state caching."""

from collections.abc import Awaitable, Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class RemoteStateCache(Protocol):
    """Key/value cache that can also list its currently valid keys.

    Each method may be implemented sync or async; callers await the result
    only when it is awaitable.
    """

    def get(self, key: str) -> Any | Awaitable[Any]:
        """Get the raw cached value for a key, or None when absent."""
        ...

    def set(self, key: str, value: Any) -> None | Awaitable[None]:
        """Store a raw value under a key."""
        ...

    def delete(self, key: str) -> None | Awaitable[None]:
        """Remove the value stored under a key."""
        ...

    def keys(self) -> Sequence[str] | Awaitable[Sequence[str]]:
        """List every currently valid key, namespaced or not."""
        ...
