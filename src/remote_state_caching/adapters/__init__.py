"""Cache stores for remote-state caching (async only)."""

from contextlib import suppress

from remote_state_caching.adapters.base import RemoteStateCache
from remote_state_caching.adapters.memory import AsyncMemoryCache

# Optional stores - only available when dependencies are installed
with suppress(ImportError):
    from remote_state_caching.adapters.redis import AsyncRedisCache

__all__ = [
    "AsyncMemoryCache",
    "AsyncRedisCache",
    "RemoteStateCache",
]
