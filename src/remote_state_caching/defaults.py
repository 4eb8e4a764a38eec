"""Default key and value serialization."""

import hashlib
import json
import re
from typing import Any

from remote_state_caching.types import OperationInput

_STRUCTURAL_CHARS = re.compile(r"[{}\[\]:]")
_NON_WORD_CHARS = re.compile(r"[^0-9a-zA-Z_]")
_REPEATED_UNDERSCORES = re.compile(r"__+")
_PREVIEW_LENGTH = 50


def _stringify(for_input: OperationInput) -> str:
    return json.dumps(list(for_input), separators=(",", ":"), default=str)


def default_key_serialization_method(*, for_input: OperationInput) -> str:
    """Serialize query input into a legible, unique cache key.

    The key is a sanitized preview of the input followed by the sha256 of
    the full JSON, e.g. ``searchFor_steak.5d41...``.
    """
    stringified = _stringify(for_input)
    preview = _STRUCTURAL_CHARS.sub("_", stringified)
    preview = _NON_WORD_CHARS.sub("", preview)
    preview = _REPEATED_UNDERSCORES.sub("_", preview)[:_PREVIEW_LENGTH]
    preview = preview.removeprefix("_").removesuffix("_")
    digest = hashlib.sha256(stringified.encode()).hexdigest()
    return f"{preview}.{digest}"


def default_value_serialization_method(output: Any) -> str:
    return json.dumps(output)


def default_value_deserialization_method(cached: Any) -> Any:
    return json.loads(cached)


__all__ = [
    "default_key_serialization_method",
    "default_value_deserialization_method",
    "default_value_serialization_method",
]
