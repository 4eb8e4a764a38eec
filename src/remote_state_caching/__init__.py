"""remote-state-caching - keep cached query results consistent with mutations."""

from contextlib import suppress

# Cache stores (async only)
from remote_state_caching.adapters import AsyncMemoryCache, RemoteStateCache

# Extendable caching
from remote_state_caching.caching import (
    LogicWithExtendableCaching,
    with_extendable_caching,
)

# Defaults
from remote_state_caching.defaults import (
    default_key_serialization_method,
    default_value_deserialization_method,
    default_value_serialization_method,
)

# Duration parsing
from remote_state_caching.duration import parse_duration
from remote_state_caching.errors import BadRequestError, RemoteStateCachingError

# Context API
from remote_state_caching.factory import (
    RemoteStateCachingContext,
    create_remote_state_caching_context,
)
from remote_state_caching.mutation import MutationWithRemoteStateRegistration
from remote_state_caching.query import QueryWithRemoteStateCaching

# Core types
from remote_state_caching.types import (
    Affected,
    InvalidationTrigger,
    MutationEvent,
    MutationExecutionStatus,
    UpdateTrigger,
)

# Optional store imports - only available when dependencies are installed
with suppress(ImportError):
    from remote_state_caching.adapters import AsyncRedisCache

__version__ = "0.1.0"

__all__ = [
    "Affected",
    "AsyncMemoryCache",
    "AsyncRedisCache",
    "BadRequestError",
    "InvalidationTrigger",
    "LogicWithExtendableCaching",
    "MutationEvent",
    "MutationExecutionStatus",
    "MutationWithRemoteStateRegistration",
    "QueryWithRemoteStateCaching",
    "RemoteStateCache",
    "RemoteStateCachingContext",
    "RemoteStateCachingError",
    "UpdateTrigger",
    "create_remote_state_caching_context",
    "default_key_serialization_method",
    "default_value_deserialization_method",
    "default_value_serialization_method",
    "parse_duration",
    "with_extendable_caching",
]
