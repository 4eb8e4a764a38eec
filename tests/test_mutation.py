"""Tests for mutation registration."""

import logging

import pytest

from remote_state_caching import (
    Affected,
    BadRequestError,
    InvalidationTrigger,
    MutationExecutionStatus,
    RemoteStateCachingContext,
)
from remote_state_caching.dispatch import TriggerDispatcher


class TestMutationRegistration:
    """Tests for withRemoteStateMutationRegistration."""

    def test_registers_name(self, rsc: RemoteStateCachingContext) -> None:
        async def add_recipe(input: dict) -> dict:
            return input["recipe"]

        mutation = rsc.with_remote_state_mutation_registration(add_recipe)
        assert mutation.name == "add_recipe"
        assert rsc.context.mutations == frozenset({"add_recipe"})

    def test_lambda_needs_explicit_name(self, rsc: RemoteStateCachingContext) -> None:
        with pytest.raises(BadRequestError, match="unnamed mutation"):
            rsc.with_remote_state_mutation_registration(lambda input: None)

        mutation = rsc.with_remote_state_mutation_registration(
            lambda input: None, name="noop"
        )
        assert mutation.name == "noop"

    def test_ambiguous_name_is_rejected(self, rsc: RemoteStateCachingContext) -> None:
        async def add_recipe(input: dict) -> dict:
            return input

        with pytest.raises(BadRequestError, match="ambiguous"):
            rsc.with_remote_state_mutation_registration(add_recipe, name="create_recipe")
        assert rsc.context.mutations == frozenset()


class TestMutationExecution:
    """Tests for executing registered mutations."""

    async def test_returns_output(self, rsc: RemoteStateCachingContext) -> None:
        @rsc.mutation()
        async def add_recipe(input: dict) -> dict:
            return input["recipe"]

        assert await add_recipe.execute({"recipe": {"title": "soup"}}) == {
            "title": "soup"
        }
        assert await add_recipe({"recipe": {"title": "stew"}}) == {"title": "stew"}

    async def test_reraises_same_error(self, rsc: RemoteStateCachingContext) -> None:
        error = RuntimeError("remote write failed")

        async def add_recipe(input: dict) -> dict:
            raise error

        mutation = rsc.with_remote_state_mutation_registration(add_recipe)
        with pytest.raises(RuntimeError) as exc_info:
            await mutation.execute({"recipe": {"title": "soup"}})
        assert exc_info.value is error

    async def test_triggers_receive_execution_details(
        self, rsc: RemoteStateCachingContext
    ) -> None:
        seen = []

        async def add_recipe(input: dict) -> dict:
            return {"uuid": "r1", **input["recipe"]}

        async def get_recipes(search: dict) -> list:
            return []

        mutation = rsc.with_remote_state_mutation_registration(add_recipe)
        query = rsc.with_remote_state_query_caching(get_recipes)
        query.add_trigger(
            invalidated_by=InvalidationTrigger(
                mutation=mutation,
                affects=lambda **kwargs: seen.append(kwargs) or Affected(),
            )
        )

        await mutation.execute({"recipe": {"title": "soup"}})

        assert seen == [
            {
                "mutation_input": ({"recipe": {"title": "soup"}},),
                "mutation_output": {"uuid": "r1", "title": "soup"},
                "mutation_status": MutationExecutionStatus.RESOLVED,
                "cached_query_keys": [],
            }
        ]

    async def test_failed_mutation_dispatches_rejected_status(
        self, rsc: RemoteStateCachingContext
    ) -> None:
        seen = []

        async def add_recipe(input: dict) -> dict:
            raise ValueError("invalid recipe")

        async def get_recipes(search: dict) -> list:
            return []

        mutation = rsc.with_remote_state_mutation_registration(add_recipe)
        query = rsc.with_remote_state_query_caching(get_recipes)
        query.add_trigger(
            invalidated_by=InvalidationTrigger(
                mutation="add_recipe",
                affects=lambda mutation_output, mutation_status, **_: seen.append(
                    (mutation_output, mutation_status)
                ),
            )
        )

        with pytest.raises(ValueError, match="invalid recipe"):
            await mutation.execute({"recipe": {}})
        assert seen == [(None, MutationExecutionStatus.REJECTED)]

    async def test_keyword_arguments_are_rejected(
        self, rsc: RemoteStateCachingContext
    ) -> None:
        calls = []

        async def add_recipe(input: dict) -> dict:
            calls.append(input)
            return input

        mutation = rsc.with_remote_state_mutation_registration(add_recipe)
        with pytest.raises(BadRequestError, match="positional"):
            await mutation.execute(input={})
        assert calls == []

    async def test_dispatch_failure_never_replaces_outcome(
        self, rsc: RemoteStateCachingContext, monkeypatch, caplog
    ) -> None:
        error = ValueError("invalid recipe")

        async def broken_dispatch(self, event) -> None:
            raise RuntimeError("dispatch broke")

        async def add_recipe(input: dict) -> dict:
            raise error

        async def archive_recipe(input: dict) -> dict:
            return input

        monkeypatch.setattr(TriggerDispatcher, "dispatch", broken_dispatch)
        failing = rsc.with_remote_state_mutation_registration(add_recipe)
        succeeding = rsc.with_remote_state_mutation_registration(archive_recipe)

        with caplog.at_level(logging.ERROR, logger="remote_state_caching.mutation"):
            with pytest.raises(ValueError) as exc_info:
                await failing.execute({})
            assert await succeeding.execute({"id": "r1"}) == {"id": "r1"}

        assert exc_info.value is error
        assert "dispatching triggers of mutation add_recipe failed" in caplog.text
        assert "dispatching triggers of mutation archive_recipe failed" in caplog.text
