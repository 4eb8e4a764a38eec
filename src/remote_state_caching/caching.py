"""Extendable caching - cache-aside wrapping with invalidate and update hooks.

Wraps an async function so that:
- execute(): reads through the cache, with stampede protection
- invalidate(): drops a cached output by key or by input
- update(): rewrites a cached output by key or by input
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, Generic, ParamSpec, TypeVar, cast

from remote_state_caching.adapters.base import RemoteStateCache
from remote_state_caching.defaults import (
    default_key_serialization_method,
    default_value_deserialization_method,
    default_value_serialization_method,
)
from remote_state_caching.errors import BadRequestError
from remote_state_caching.types import (
    CacheResolver,
    KeySerializer,
    OperationInput,
    ValueDeserializer,
    ValueSerializer,
)

P = ParamSpec("P")
R = TypeVar("R")
T = TypeVar("T")


async def maybe_await(value: T | Awaitable[T]) -> T:
    """Await ``value`` if it is awaitable, otherwise return it as is."""
    if inspect.isawaitable(value):
        return cast(T, await value)
    return cast(T, value)


def resolve_cache(
    cache: RemoteStateCache | CacheResolver,
    *,
    from_input: OperationInput,
) -> RemoteStateCache:
    """Pick the concrete cache for one invocation.

    ``cache`` is either a cache instance or a resolver called as
    ``cache(from_input=...)`` with the invocation's positional arguments.
    """
    if isinstance(cache, RemoteStateCache):
        return cache
    if callable(cache):
        resolved = cache(from_input=from_input)
        if not isinstance(resolved, RemoteStateCache):
            raise BadRequestError(
                "cache resolver did not return a cache",
                {"resolved": type(resolved).__name__},
            )
        return resolved
    raise BadRequestError(
        "cache must be a cache instance or a function resolving one from input",
        {"cache": type(cache).__name__},
    )


def _as_input(for_input: Sequence[Any]) -> OperationInput:
    """Positional arguments of one invocation, as a tuple."""
    if isinstance(for_input, (Mapping, str, bytes)) or not isinstance(
        for_input, Sequence
    ):
        raise BadRequestError(
            "an input must be the sequence of positional arguments of one call",
            {"got": type(for_input).__name__},
        )
    return tuple(for_input)


def _exactly_one_target(
    for_input: Sequence[Any] | None, for_key: str | None, operation: str
) -> None:
    if (for_input is None) == (for_key is None):
        raise BadRequestError(
            f"{operation} requires exactly one of for_input or for_key",
            {"for_input": for_input, "for_key": for_key},
        )


class LogicWithExtendableCaching(Generic[P, R]):
    """An async function wrapped with cache-aside caching."""

    def __init__(
        self,
        logic: Callable[P, Awaitable[R]],
        *,
        cache: RemoteStateCache | CacheResolver,
        serialize_key: KeySerializer = default_key_serialization_method,
        serialize_value: ValueSerializer = default_value_serialization_method,
        deserialize_value: ValueDeserializer = default_value_deserialization_method,
    ) -> None:
        self._logic = logic
        self._cache = cache
        self._serialize_key = serialize_key
        self._serialize_value = serialize_value
        self._deserialize_value = deserialize_value
        self._in_flight: dict[tuple[int, str], asyncio.Future[Any]] = {}
        self._lock = asyncio.Lock()

    def key_for(self, for_input: Sequence[Any]) -> str:
        """Cache key the given input is stored under."""
        return self._serialize_key(for_input=_as_input(for_input))

    def resolve_cache(self, *, from_input: Sequence[Any]) -> RemoteStateCache:
        return resolve_cache(self._cache, from_input=_as_input(from_input))

    async def execute(self, *args: P.args, **kwargs: P.kwargs) -> R:
        """Return the cached output for ``args``, computing it on a miss."""
        if kwargs:
            raise BadRequestError(
                "cached operations must be called with positional arguments only",
                {"kwargs": sorted(kwargs)},
            )
        cache = self.resolve_cache(from_input=args)
        key = self.key_for(args)

        async def fetch() -> R:
            cached = await maybe_await(cache.get(key))
            if cached is not None:
                return cast(R, self._deserialize_value(cached))
            output = await self._logic(*args)
            await maybe_await(cache.set(key, self._serialize_value(output)))
            return output

        return await self._coalesce((id(cache), key), fetch)

    async def __call__(self, *args: P.args, **kwargs: P.kwargs) -> R:
        return await self.execute(*args, **kwargs)

    async def invalidate(
        self,
        *,
        for_input: Sequence[Any] | None = None,
        for_key: str | None = None,
        cache: RemoteStateCache | None = None,
    ) -> None:
        """Drop the cached output for an input or a key.

        When invalidating by key against a cache resolved from input, pass the
        concrete ``cache`` to operate on.
        """
        _exactly_one_target(for_input, for_key, "invalidate")
        target_cache, key = self._target(for_input, for_key, cache)
        await maybe_await(target_cache.delete(key))

    async def update(
        self,
        *,
        to_value: Callable[..., Any],
        for_input: Sequence[Any] | None = None,
        for_key: str | None = None,
        cache: RemoteStateCache | None = None,
        only_if_cached: bool = False,
    ) -> bool:
        """Rewrite the cached output for an input or a key.

        ``to_value`` is called as ``to_value(from_cached_output=...)`` with the
        deserialized cached output, or None on a miss, and may be async. With
        ``only_if_cached`` a miss writes nothing and ``to_value`` is not called.

        Returns:
            Whether a value was written
        """
        _exactly_one_target(for_input, for_key, "update")
        target_cache, key = self._target(for_input, for_key, cache)
        cached = await maybe_await(target_cache.get(key))
        if cached is None and only_if_cached:
            return False
        from_cached_output = (
            self._deserialize_value(cached) if cached is not None else None
        )
        value = await maybe_await(to_value(from_cached_output=from_cached_output))
        await maybe_await(target_cache.set(key, self._serialize_value(value)))
        return True

    def _target(
        self,
        for_input: Sequence[Any] | None,
        for_key: str | None,
        cache: RemoteStateCache | None,
    ) -> tuple[RemoteStateCache, str]:
        if for_input is not None:
            key = self.key_for(for_input)
            if cache is None:
                cache = self.resolve_cache(from_input=for_input)
            return cache, key
        if cache is None:
            cache = self.resolve_cache(from_input=())
        return cache, cast(str, for_key)

    async def _coalesce(
        self, key: tuple[int, str], fetch: Callable[[], Awaitable[R]]
    ) -> R:
        """Coalesce concurrent requests for same key (stampede protection)."""
        async with self._lock:
            existing_future = self._in_flight.get(key)
            if existing_future is None:
                new_future: asyncio.Future[R] = (
                    asyncio.get_running_loop().create_future()
                )
                self._in_flight[key] = new_future

        # Wait for the existing request outside the lock
        if existing_future is not None:
            return cast(R, await asyncio.shield(existing_future))

        try:
            result = await fetch()
            new_future.set_result(result)
            return result
        except asyncio.CancelledError:
            new_future.cancel()
            raise
        except Exception as e:
            new_future.set_exception(e)
            new_future.exception()  # mark retrieved when nobody else is waiting
            raise
        finally:
            async with self._lock:
                del self._in_flight[key]


def with_extendable_caching(
    logic: Callable[P, Awaitable[R]],
    *,
    cache: RemoteStateCache | CacheResolver,
    serialize_key: KeySerializer = default_key_serialization_method,
    serialize_value: ValueSerializer = default_value_serialization_method,
    deserialize_value: ValueDeserializer = default_value_deserialization_method,
) -> LogicWithExtendableCaching[P, R]:
    """Wrap an async function with cache-aside caching.

    Args:
        logic: Async function whose output should be cached
        cache: Cache instance, or resolver called as ``cache(from_input=args)``
        serialize_key: Builds the cache key, called as ``serialize_key(for_input=args)``
        serialize_value: Turns an output into the raw value stored in the cache
        deserialize_value: Turns a raw cached value back into an output

    Returns:
        LogicWithExtendableCaching with execute, invalidate and update
    """
    return LogicWithExtendableCaching(
        logic,
        cache=cache,
        serialize_key=serialize_key,
        serialize_value=serialize_value,
        deserialize_value=deserialize_value,
    )


__all__ = [
    "LogicWithExtendableCaching",
    "maybe_await",
    "resolve_cache",
    "with_extendable_caching",
]
