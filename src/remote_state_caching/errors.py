"""Exceptions raised by remote-state caching."""

from __future__ import annotations

import json
from typing import Any


class RemoteStateCachingError(Exception):
    """Base class for errors raised by this library."""


class BadRequestError(RemoteStateCachingError):
    """Raised when the library is used with invalid input.

    Carries the offending values in ``metadata`` so callers can see what was
    in memory when the request was rejected.
    """

    def __init__(self, message: str, metadata: dict[str, Any] | None = None) -> None:
        self.metadata = metadata
        full_message = message
        if metadata:
            full_message += f"\n\n{json.dumps(metadata, default=str)}"
        super().__init__(full_message)


__all__ = ["BadRequestError", "RemoteStateCachingError"]
