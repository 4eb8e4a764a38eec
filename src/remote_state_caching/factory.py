"""Entry point: a remote-state caching context for an application."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from typing import Any, ParamSpec, TypeVar

from remote_state_caching.adapters.base import RemoteStateCache
from remote_state_caching.context import RemoteStateCacheContext
from remote_state_caching.dispatch import TriggerDispatcher
from remote_state_caching.mutation import (
    MutationWithRemoteStateRegistration,
    register_mutation,
)
from remote_state_caching.query import QueryWithRemoteStateCaching, register_query
from remote_state_caching.types import (
    CacheResolver,
    InvalidationTrigger,
    KeySerializer,
    UpdateTrigger,
    ValueDeserializer,
    ValueSerializer,
)

P = ParamSpec("P")
R = TypeVar("R")


class RemoteStateCachingContext:
    """Wrappers that register queries and mutations into one shared context.

    Usage:
        rsc = create_remote_state_caching_context(cache=AsyncMemoryCache())

        get_recipes = rsc.with_remote_state_query_caching(get_recipes_logic)
        add_recipe = rsc.with_remote_state_mutation_registration(add_recipe_logic)

        get_recipes.add_trigger(
            invalidated_by=InvalidationTrigger(
                mutation=add_recipe,
                affects=lambda mutation_input, **_: Affected(inputs=[...]),
            )
        )
    """

    def __init__(
        self,
        *,
        cache: RemoteStateCache | CacheResolver,
        serialize_key: KeySerializer | None = None,
        serialize_value: ValueSerializer | None = None,
        deserialize_value: ValueDeserializer | None = None,
    ) -> None:
        self._cache = cache
        self._serialize_key = serialize_key
        self._serialize_value = serialize_value
        self._deserialize_value = deserialize_value
        self._context = RemoteStateCacheContext()
        self._dispatcher = TriggerDispatcher(self._context)

    @property
    def context(self) -> RemoteStateCacheContext:
        """The registry every query and mutation of this context lives in."""
        return self._context

    def with_remote_state_query_caching(
        self,
        logic: Callable[P, Awaitable[R]],
        *,
        name: str | None = None,
        cache: RemoteStateCache | CacheResolver | None = None,
        serialize_key: KeySerializer | None = None,
        serialize_value: ValueSerializer | None = None,
        deserialize_value: ValueDeserializer | None = None,
        invalidated_by: Iterable[InvalidationTrigger] = (),
        updated_by: Iterable[UpdateTrigger] = (),
    ) -> QueryWithRemoteStateCaching[P, R]:
        """Add caching to a query and register it to this context.

        Per-query options override the context defaults. Triggers given here
        are registered with the query, as if added through ``add_trigger``.
        """
        return register_query(
            self._context,
            logic,
            name=name,
            cache=cache if cache is not None else self._cache,
            serialize_key=serialize_key or self._serialize_key,
            serialize_value=serialize_value or self._serialize_value,
            deserialize_value=deserialize_value or self._deserialize_value,
            invalidated_by=invalidated_by,
            updated_by=updated_by,
        )

    def with_remote_state_mutation_registration(
        self,
        logic: Callable[P, Awaitable[R]],
        *,
        name: str | None = None,
    ) -> MutationWithRemoteStateRegistration[P, R]:
        """Register a mutation so its executions trigger query cache changes."""
        return register_mutation(self._context, self._dispatcher, logic, name=name)

    def query(
        self, **options: Any
    ) -> Callable[[Callable[P, Awaitable[R]]], QueryWithRemoteStateCaching[P, R]]:
        """Decorator form of :meth:`with_remote_state_query_caching`.

        Usage:
            @rsc.query()
            async def get_recipes(search: dict) -> list[dict]:
                ...
        """

        def decorator(
            logic: Callable[P, Awaitable[R]],
        ) -> QueryWithRemoteStateCaching[P, R]:
            return self.with_remote_state_query_caching(logic, **options)

        return decorator

    def mutation(
        self, *, name: str | None = None
    ) -> Callable[
        [Callable[P, Awaitable[R]]], MutationWithRemoteStateRegistration[P, R]
    ]:
        """Decorator form of :meth:`with_remote_state_mutation_registration`."""

        def decorator(
            logic: Callable[P, Awaitable[R]],
        ) -> MutationWithRemoteStateRegistration[P, R]:
            return self.with_remote_state_mutation_registration(logic, name=name)

        return decorator


def create_remote_state_caching_context(
    *,
    cache: RemoteStateCache | CacheResolver,
    serialize_key: KeySerializer | None = None,
    serialize_value: ValueSerializer | None = None,
    deserialize_value: ValueDeserializer | None = None,
) -> RemoteStateCachingContext:
    """Create a remote-state caching context.

    Args:
        cache: Cache instance, or resolver called as ``cache(from_input=args)``
        serialize_key: Default key serialization for queries of this context
        serialize_value: Default value serialization for queries of this context
        deserialize_value: Default value deserialization for queries of this context

    Returns:
        RemoteStateCachingContext with the query and mutation wrappers
    """
    return RemoteStateCachingContext(
        cache=cache,
        serialize_key=serialize_key,
        serialize_value=serialize_value,
        deserialize_value=deserialize_value,
    )


__all__ = ["RemoteStateCachingContext", "create_remote_state_caching_context"]
