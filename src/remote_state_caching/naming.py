"""Resolving the name an operation is registered under."""

from collections.abc import Callable
from typing import Any

from remote_state_caching.errors import BadRequestError
from remote_state_caching.types import NAMESPACE_SEPARATOR, RemoteStateOperation

_ANONYMOUS_NAMES = frozenset({"<lambda>"})


def _intrinsic_name(logic: Callable[..., Any]) -> str | None:
    name = getattr(logic, "__name__", None)
    if not isinstance(name, str) or name in _ANONYMOUS_NAMES:
        return None
    return name or None


def extract_name_from_registration_inputs(
    *,
    operation: RemoteStateOperation,
    logic: Callable[..., Any],
    name: str | None = None,
) -> str:
    """Return the name to register ``logic`` under.

    The function's own ``__name__`` and an explicit ``name`` must agree when
    both are present. Lambdas and partials have no usable ``__name__``, so
    they need an explicit one.
    """
    kind = operation.value.lower()
    name_from_function_reference = _intrinsic_name(logic)
    if (
        name
        and name_from_function_reference
        and name != name_from_function_reference
    ):
        raise BadRequestError(
            f"a {kind} was registered with an explicit name which differs from "
            "the name of the wrapped function. this is ambiguous, so it is not "
            "allowed. use the function's own name",
            {
                "name_from_function_reference": name_from_function_reference,
                "name_from_explicit_options": name,
            },
        )
    resolved = name_from_function_reference or name
    if not resolved:
        raise BadRequestError(
            f"name was not defined on {kind} registration. "
            f"can not register an unnamed {kind}",
            {"name": resolved},
        )
    if NAMESPACE_SEPARATOR in resolved:
        raise BadRequestError(
            f"{kind} names may not contain {NAMESPACE_SEPARATOR!r}",
            {"name": resolved},
        )
    return resolved


__all__ = ["extract_name_from_registration_inputs"]
