"""Trigger dispatch - applies query invalidations and updates after a mutation.

For every registered query, independently:
- invalidation pass: drop the cached outputs the matching triggers affect
- update pass: rewrite the cached outputs the matching triggers affect

The invalidation pass settles before the update pass starts. A failing
trigger, key or cache write is logged and never stops the rest of the
dispatch.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Iterable, Mapping
from typing import Any

from remote_state_caching.adapters.base import RemoteStateCache
from remote_state_caching.caching import maybe_await
from remote_state_caching.context import RemoteStateCacheContext
from remote_state_caching.errors import BadRequestError
from remote_state_caching.types import (
    Affected,
    InvalidationTrigger,
    MutationEvent,
    QueryRegistration,
    UpdateTrigger,
)

logger = logging.getLogger(__name__)


class TriggerDispatcher:
    """Runs the triggers of every query registered to a context."""

    def __init__(self, context: RemoteStateCacheContext) -> None:
        self._context = context
        self._warned: set[tuple[str, str]] = set()

    async def dispatch(self, event: MutationEvent[Any]) -> None:
        """Apply every trigger that references ``event.mutation_name``."""
        registrations = self._context.queries
        self._warn_unregistered_mutations(registrations)
        logger.debug(
            "dispatching triggers for mutation %s (%s) across %d queries",
            event.mutation_name,
            event.mutation_status.value,
            len(registrations),
        )

        await self._settle(
            [self._invalidate_query(reg, event) for reg in registrations],
            "run invalidation triggers for mutation %s",
            event.mutation_name,
        )
        await self._settle(
            [self._update_query(reg, event) for reg in registrations],
            "run update triggers for mutation %s",
            event.mutation_name,
        )

    # -------------------------------------------------------------------------
    # Invalidation pass
    # -------------------------------------------------------------------------

    async def _invalidate_query(
        self, registration: QueryRegistration, event: MutationEvent[Any]
    ) -> None:
        triggers = [
            trigger
            for trigger in registration.invalidated_by
            if trigger.mutation_name == event.mutation_name
        ]
        if not triggers:
            return
        await asyncio.gather(
            *(self._run_invalidation(registration, t, event) for t in triggers)
        )

    async def _run_invalidation(
        self,
        registration: QueryRegistration,
        trigger: InvalidationTrigger,
        event: MutationEvent[Any],
    ) -> None:
        try:
            cache = registration.query.resolve_cache(from_input=event.mutation_input)
            affected = await self._affected(registration, trigger, event, cache)
            operations: list[Awaitable[Any]] = [
                registration.query.invalidate(for_key=key, cache=cache)
                for key in self._owned_keys(registration, affected.keys)
            ]
            operations.extend(
                registration.query.invalidate(for_input=for_input)
                for for_input in affected.inputs
            )
        except Exception:
            logger.exception(
                "invalidation trigger of query %s for mutation %s failed",
                registration.name,
                event.mutation_name,
            )
            return

        await self._settle(
            operations, "invalidate cached output of query %s", registration.name
        )

    # -------------------------------------------------------------------------
    # Update pass
    # -------------------------------------------------------------------------

    async def _update_query(
        self, registration: QueryRegistration, event: MutationEvent[Any]
    ) -> None:
        triggers = [
            trigger
            for trigger in registration.updated_by
            if trigger.mutation_name == event.mutation_name
        ]
        if not triggers:
            return
        await asyncio.gather(
            *(self._run_update(registration, t, event) for t in triggers)
        )

    async def _run_update(
        self,
        registration: QueryRegistration,
        trigger: UpdateTrigger,
        event: MutationEvent[Any],
    ) -> None:
        try:
            cache = registration.query.resolve_cache(from_input=event.mutation_input)
            affected = await self._affected(registration, trigger, event, cache)
            # One update per concrete entry, however many times it was named
            targets: dict[tuple[int, str], tuple[RemoteStateCache, str]] = {
                (id(cache), key): (cache, key)
                for key in self._owned_keys(registration, affected.keys)
            }
            for for_input in affected.inputs:
                input_cache = registration.query.resolve_cache(from_input=for_input)
                key = registration.query.key_for(for_input)
                targets.setdefault((id(input_cache), key), (input_cache, key))
        except Exception:
            logger.exception(
                "update trigger of query %s for mutation %s failed",
                registration.name,
                event.mutation_name,
            )
            return

        await self._settle(
            [
                self._update_key(registration, trigger, event, target_cache, key)
                for target_cache, key in targets.values()
            ],
            "update cached output of query %s",
            registration.name,
        )

    async def _update_key(
        self,
        registration: QueryRegistration,
        trigger: UpdateTrigger,
        event: MutationEvent[Any],
        cache: RemoteStateCache,
        key: str,
    ) -> None:
        async def to_value(*, from_cached_output: Any) -> Any:
            return await maybe_await(
                trigger.update(
                    cached_query_output=from_cached_output,
                    mutation_input=event.mutation_input,
                    mutation_output=event.mutation_output,
                    mutation_status=event.mutation_status,
                )
            )

        # Nothing valid cached means nothing to update from
        written = await registration.query.update(
            for_key=key, cache=cache, to_value=to_value, only_if_cached=True
        )
        if not written:
            logger.debug("skipping update of %s: not cached", key)

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    async def _affected(
        self,
        registration: QueryRegistration,
        trigger: InvalidationTrigger | UpdateTrigger,
        event: MutationEvent[Any],
        cache: RemoteStateCache,
    ) -> Affected:
        all_keys = await maybe_await(cache.keys())
        cached_query_keys = [
            key for key in dict.fromkeys(all_keys) if registration.owns_key(key)
        ]
        affected = await maybe_await(
            trigger.affects(
                mutation_input=event.mutation_input,
                mutation_output=event.mutation_output,
                mutation_status=event.mutation_status,
                cached_query_keys=cached_query_keys,
            )
        )
        if affected is None:
            return Affected()
        if isinstance(affected, Affected):
            return affected
        if isinstance(affected, Mapping):
            return Affected(
                keys=affected.get("keys") or (), inputs=affected.get("inputs") or ()
            )
        raise BadRequestError(
            "affects must return Affected, a mapping of keys and inputs, or None",
            {"query": registration.name, "got": type(affected).__name__},
        )

    def _owned_keys(
        self, registration: QueryRegistration, keys: Iterable[str]
    ) -> list[str]:
        owned = []
        for key in dict.fromkeys(keys):
            if isinstance(key, str) and registration.owns_key(key):
                owned.append(key)
            else:
                logger.warning(
                    "ignoring key %r affected for query %s: outside its namespace",
                    key,
                    registration.name,
                )
        return owned

    async def _settle(
        self, operations: list[Awaitable[Any]], action: str, *args: Any
    ) -> None:
        """Run operations together; log failures without raising.

        ``action`` and ``args`` format the log message naming what failed.
        """
        results = await asyncio.gather(*operations, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error("failed to " + action, *args, exc_info=result)
            elif isinstance(result, BaseException):
                raise result

    def _warn_unregistered_mutations(
        self, registrations: list[QueryRegistration]
    ) -> None:
        for registration in registrations:
            triggers: list[InvalidationTrigger | UpdateTrigger] = [
                *registration.invalidated_by,
                *registration.updated_by,
            ]
            for trigger in triggers:
                warning = (registration.name, trigger.mutation_name)
                if warning in self._warned or self._context.has_mutation(
                    trigger.mutation_name
                ):
                    continue
                self._warned.add(warning)
                logger.warning(
                    "query %s has a trigger on mutation %s, which is not "
                    "registered to this context",
                    registration.name,
                    trigger.mutation_name,
                )


__all__ = ["TriggerDispatcher"]
