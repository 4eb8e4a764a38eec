"""Mutations registered to trigger query cache invalidations and updates."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Generic, ParamSpec, TypeVar

from remote_state_caching.context import RemoteStateCacheContext
from remote_state_caching.errors import BadRequestError
from remote_state_caching.naming import extract_name_from_registration_inputs
from remote_state_caching.types import (
    MutationEvent,
    MutationExecutionStatus,
    RemoteStateOperation,
)

if TYPE_CHECKING:
    from remote_state_caching.dispatch import TriggerDispatcher

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


class MutationWithRemoteStateRegistration(Generic[P, R]):
    """A registered mutation.

    Executing it runs the wrapped logic, then dispatches every trigger that
    references this mutation, whether the logic resolved or raised.
    """

    def __init__(
        self,
        name: str,
        logic: Callable[P, Awaitable[R]],
        dispatcher: TriggerDispatcher,
    ) -> None:
        self.name = name
        self._logic = logic
        self._dispatcher = dispatcher

    async def execute(self, *args: P.args, **kwargs: P.kwargs) -> R:
        if kwargs:
            raise BadRequestError(
                "registered mutations must be called with positional arguments only",
                {"mutation": self.name, "kwargs": sorted(kwargs)},
            )
        try:
            output = await self._logic(*args, **kwargs)
        except Exception:
            # The remote state may have partially changed before the failure
            await self._dispatch(
                MutationEvent(
                    mutation_name=self.name,
                    mutation_input=args,
                    mutation_output=None,
                    mutation_status=MutationExecutionStatus.REJECTED,
                )
            )
            raise
        await self._dispatch(
            MutationEvent(
                mutation_name=self.name,
                mutation_input=args,
                mutation_output=output,
                mutation_status=MutationExecutionStatus.RESOLVED,
            )
        )
        return output

    async def __call__(self, *args: P.args, **kwargs: P.kwargs) -> R:
        return await self.execute(*args, **kwargs)

    async def _dispatch(self, event: MutationEvent[R]) -> None:
        """Run the triggers of ``event``; never replaces the execution's outcome."""
        try:
            await self._dispatcher.dispatch(event)
        except Exception:
            logger.exception("dispatching triggers of mutation %s failed", self.name)

    def __repr__(self) -> str:
        return f"Mutation({self.name})"


def register_mutation(
    context: RemoteStateCacheContext,
    dispatcher: TriggerDispatcher,
    logic: Callable[P, Awaitable[R]],
    *,
    name: str | None = None,
) -> MutationWithRemoteStateRegistration[P, R]:
    """Register ``logic`` as a mutation of ``context``; no caching is added."""
    mutation_name = extract_name_from_registration_inputs(
        operation=RemoteStateOperation.MUTATION, logic=logic, name=name
    )
    context.register_mutation(mutation_name)
    return MutationWithRemoteStateRegistration(mutation_name, logic, dispatcher)


__all__ = ["MutationWithRemoteStateRegistration", "register_mutation"]
