"""Core types for remote-state caching."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from remote_state_caching.adapters.base import RemoteStateCache
    from remote_state_caching.caching import LogicWithExtendableCaching
    from remote_state_caching.mutation import MutationWithRemoteStateRegistration

T = TypeVar("T")

# Duration type alias
Duration = str | int  # "30s", "5m", "2h", "1d" or milliseconds

# The positional arguments a query or mutation was invoked with
OperationInput = tuple[Any, ...]

# Either a cache instance or a function choosing one from the call's input
CacheResolver = Callable[..., "RemoteStateCache"]

KeySerializer = Callable[..., str]  # (*, for_input) -> str
ValueSerializer = Callable[[Any], Any]
ValueDeserializer = Callable[[Any], Any]

# Separates a query's name from the serialized input in its cache keys
NAMESPACE_SEPARATOR = "."


class MutationExecutionStatus(str, Enum):
    """How a mutation settled."""

    RESOLVED = "RESOLVED"
    REJECTED = "REJECTED"


class RemoteStateOperation(str, Enum):
    """The kinds of operation that can be registered against remote state."""

    QUERY = "QUERY"
    MUTATION = "MUTATION"


@dataclass(frozen=True, slots=True)
class Affected:
    """Which cached entries of a query a mutation affected.

    Both ``keys`` and ``inputs`` are honoured when both are given.
    """

    keys: Sequence[str] = ()
    inputs: Sequence[OperationInput] = ()


@dataclass(frozen=True, slots=True)
class MutationEvent(Generic[T]):
    """A single settled execution of a registered mutation."""

    mutation_name: str
    mutation_input: OperationInput
    mutation_output: T | None
    mutation_status: MutationExecutionStatus


AffectsFn = Callable[..., "Affected | Awaitable[Affected]"]
UpdateFn = Callable[..., Any]


def _mutation_name_of(mutation: MutationWithRemoteStateRegistration[Any] | str) -> str:
    return mutation if isinstance(mutation, str) else mutation.name


@dataclass(frozen=True, slots=True)
class InvalidationTrigger:
    """Invalidates cached query outputs when ``mutation`` executes.

    ``affects`` is called with keyword arguments ``mutation_input``,
    ``mutation_output``, ``mutation_status`` and ``cached_query_keys`` and
    returns an :class:`Affected`.
    """

    mutation: MutationWithRemoteStateRegistration[Any] | str
    affects: AffectsFn

    @property
    def mutation_name(self) -> str:
        return _mutation_name_of(self.mutation)


@dataclass(frozen=True, slots=True)
class UpdateTrigger:
    """Rewrites cached query outputs in place when ``mutation`` executes.

    ``update`` is called with keyword arguments ``cached_query_output``,
    ``mutation_input``, ``mutation_output`` and ``mutation_status`` and
    returns (or resolves to) the replacement output. It is only ever called
    for keys that currently hold a valid cached value.
    """

    mutation: MutationWithRemoteStateRegistration[Any] | str
    affects: AffectsFn
    update: UpdateFn

    @property
    def mutation_name(self) -> str:
        return _mutation_name_of(self.mutation)


@dataclass(slots=True)
class QueryRegistration:
    """Everything the context tracks about one cached query."""

    name: str
    query: LogicWithExtendableCaching[..., Any]
    deserialize_value: ValueDeserializer
    invalidated_by: list[InvalidationTrigger] = field(default_factory=list)
    updated_by: list[UpdateTrigger] = field(default_factory=list)

    @property
    def namespace(self) -> str:
        """Prefix shared by every cache key written for this query."""
        return f"{self.name}{NAMESPACE_SEPARATOR}"

    def owns_key(self, key: str) -> bool:
        return key.startswith(self.namespace)
