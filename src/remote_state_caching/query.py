"""Queries wrapped with remote-state caching."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any, Generic, ParamSpec, TypeVar

from remote_state_caching.adapters.base import RemoteStateCache
from remote_state_caching.caching import with_extendable_caching
from remote_state_caching.context import RemoteStateCacheContext
from remote_state_caching.defaults import (
    default_key_serialization_method,
    default_value_deserialization_method,
    default_value_serialization_method,
)
from remote_state_caching.errors import BadRequestError
from remote_state_caching.naming import extract_name_from_registration_inputs
from remote_state_caching.types import (
    NAMESPACE_SEPARATOR,
    CacheResolver,
    InvalidationTrigger,
    KeySerializer,
    OperationInput,
    QueryRegistration,
    RemoteStateOperation,
    UpdateTrigger,
    ValueDeserializer,
    ValueSerializer,
)

P = ParamSpec("P")
R = TypeVar("R")


_TRIGGER_TYPES = {"invalidated_by": InvalidationTrigger, "updated_by": UpdateTrigger}


def _checked_triggers(
    query_name: str, kind: str, triggers: Iterable[Any]
) -> list[Any]:
    expected = _TRIGGER_TYPES[kind]
    checked = list(triggers)
    for trigger in checked:
        if not isinstance(trigger, expected):
            raise BadRequestError(
                f"{kind} must be an {expected.__name__}",
                {"query": query_name, "got": type(trigger).__name__},
            )
    return checked

class QueryWithRemoteStateCaching(Generic[P, R]):
    """A registered query: cached execution plus manual cache control.

    Usage:
        recipes = await get_recipes.execute({"searchFor": "steak"})
        await get_recipes.invalidate(for_input=({"searchFor": "steak"},))
        get_recipes.add_trigger(invalidated_by=InvalidationTrigger(...))
    """

    __slots__ = ("_registration",)

    def __init__(self, registration: QueryRegistration) -> None:
        self._registration = registration

    @property
    def name(self) -> str:
        return self._registration.name

    async def execute(self, *args: P.args, **kwargs: P.kwargs) -> R:
        """Return the cached output for these arguments, querying on a miss."""
        return await self._registration.query.execute(*args, **kwargs)

    async def __call__(self, *args: P.args, **kwargs: P.kwargs) -> R:
        return await self.execute(*args, **kwargs)

    async def invalidate(
        self,
        *,
        for_input: Sequence[Any] | None = None,
        for_key: str | None = None,
        cache: RemoteStateCache | None = None,
    ) -> None:
        """Drop a cached output so the next execute queries again."""
        await self._registration.query.invalidate(
            for_input=for_input, for_key=for_key, cache=cache
        )

    async def update(
        self,
        *,
        to_value: Callable[..., Any],
        for_input: Sequence[Any] | None = None,
        for_key: str | None = None,
        cache: RemoteStateCache | None = None,
    ) -> None:
        """Rewrite a cached output.

        ``to_value`` receives ``from_cached_output`` (None on a miss).
        """
        await self._registration.query.update(
            to_value=to_value, for_input=for_input, for_key=for_key, cache=cache
        )

    def key_for(self, for_input: OperationInput) -> str:
        """Namespaced cache key for the given input."""
        return self._registration.query.key_for(for_input)

    def add_trigger(
        self,
        *,
        invalidated_by: InvalidationTrigger | None = None,
        updated_by: UpdateTrigger | None = None,
    ) -> None:
        """Attach exactly one invalidation or update trigger to this query."""
        if (invalidated_by is None) == (updated_by is None):
            raise BadRequestError(
                "add_trigger requires exactly one of invalidated_by or updated_by",
                {"query": self.name},
            )
        if invalidated_by is not None:
            self._registration.invalidated_by.extend(
                _checked_triggers(self.name, "invalidated_by", [invalidated_by])
            )
            return
        self._registration.updated_by.extend(
            _checked_triggers(self.name, "updated_by", [updated_by])
        )


def register_query(
    context: RemoteStateCacheContext,
    logic: Callable[P, Awaitable[R]],
    *,
    cache: RemoteStateCache | CacheResolver,
    name: str | None = None,
    serialize_key: KeySerializer | None = None,
    serialize_value: ValueSerializer | None = None,
    deserialize_value: ValueDeserializer | None = None,
    invalidated_by: Iterable[InvalidationTrigger] = (),
    updated_by: Iterable[UpdateTrigger] = (),
) -> QueryWithRemoteStateCaching[P, R]:
    """Wrap ``logic`` with caching and register it to ``context``.

    Cache keys are namespaced as ``<name>.<serialized input>`` so queries can
    share one cache without colliding. ``invalidated_by`` and ``updated_by``
    seed the trigger lists that ``add_trigger`` extends later.
    """
    query_name = extract_name_from_registration_inputs(
        operation=RemoteStateOperation.QUERY, logic=logic, name=name
    )
    invalidation_triggers = _checked_triggers(
        query_name, "invalidated_by", invalidated_by
    )
    update_triggers = _checked_triggers(query_name, "updated_by", updated_by)
    key_serializer = serialize_key or default_key_serialization_method
    value_deserializer = deserialize_value or default_value_deserialization_method

    def serialize_namespaced_key(*, for_input: OperationInput) -> str:
        return f"{query_name}{NAMESPACE_SEPARATOR}{key_serializer(for_input=for_input)}"

    wrapped = with_extendable_caching(
        logic,
        cache=cache,
        serialize_key=serialize_namespaced_key,
        serialize_value=serialize_value or default_value_serialization_method,
        deserialize_value=value_deserializer,
    )
    registration = QueryRegistration(
        name=query_name,
        query=wrapped,
        deserialize_value=value_deserializer,
        invalidated_by=invalidation_triggers,
        updated_by=update_triggers,
    )
    context.register_query(registration)
    return QueryWithRemoteStateCaching(registration)


__all__ = ["QueryWithRemoteStateCaching", "register_query"]
