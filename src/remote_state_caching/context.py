"""The registry of queries and mutations sharing one remote-state cache."""

from __future__ import annotations

import logging
import threading

from remote_state_caching.errors import BadRequestError
from remote_state_caching.types import QueryRegistration

logger = logging.getLogger(__name__)


class RemoteStateCacheContext:
    """Tracks every query and mutation registered within one cache scope.

    Registrations are append-only for the lifetime of the context.
    """

    def __init__(self) -> None:
        self._queries: dict[str, QueryRegistration] = {}
        self._mutations: set[str] = set()
        self._lock = threading.Lock()

    def register_query(self, registration: QueryRegistration) -> None:
        """Add a query, rejecting a name that is already registered."""
        with self._lock:
            if registration.name in self._queries:
                raise BadRequestError(
                    "a query with this name was already registered to the "
                    "context. these names should be unique",
                    {"name": registration.name},
                )
            self._queries[registration.name] = registration
        logger.debug("registered query %s", registration.name)

    def register_mutation(self, name: str) -> None:
        with self._lock:
            self._mutations.add(name)
        logger.debug("registered mutation %s", name)

    def get_query(self, name: str) -> QueryRegistration | None:
        return self._queries.get(name)

    def has_mutation(self, name: str) -> bool:
        return name in self._mutations

    @property
    def queries(self) -> list[QueryRegistration]:
        """Snapshot of all registered queries, in registration order."""
        with self._lock:
            return list(self._queries.values())

    @property
    def mutations(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._mutations)


__all__ = ["RemoteStateCacheContext"]
