"""Shared pytest fixtures."""

from collections.abc import Callable
from typing import Any
from uuid import uuid4

import pytest

from remote_state_caching import (
    AsyncMemoryCache,
    RemoteStateCachingContext,
    create_remote_state_caching_context,
)


class SyncDictCache:
    """A cache whose methods are all synchronous."""

    def __init__(self) -> None:
        self.store: dict[str, Any] = {}

    def get(self, key: str) -> Any:
        return self.store.get(key)

    def set(self, key: str, value: Any) -> None:
        self.store[key] = value

    def delete(self, key: str) -> None:
        self.store.pop(key, None)

    def keys(self) -> list[str]:
        return list(self.store)


def _make_recipe(title: str = "__TITLE__") -> dict[str, Any]:
    return {
        "uuid": str(uuid4()),
        "title": title,
        "description": "__DESCRIPTION__",
        "ingredients": [],
        "steps": [],
    }


@pytest.fixture
def cache() -> AsyncMemoryCache:
    """Create a fresh AsyncMemoryCache for each test."""
    return AsyncMemoryCache()


@pytest.fixture
def rsc(cache: AsyncMemoryCache) -> RemoteStateCachingContext:
    """Create a remote-state caching context over the memory cache."""
    return create_remote_state_caching_context(cache=cache)


@pytest.fixture
def sync_cache() -> SyncDictCache:
    """Create a cache with synchronous methods."""
    return SyncDictCache()


@pytest.fixture
def make_recipe() -> Callable[..., dict[str, Any]]:
    """Factory for recipes with a fresh uuid."""
    return _make_recipe
