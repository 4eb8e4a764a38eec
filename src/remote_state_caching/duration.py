"""Duration parsing for cache store TTLs."""

import re

from remote_state_caching.types import Duration

_DURATION_PATTERN = re.compile(r"^(\d+)(ms|s|m|h|d)$")
_UNITS: dict[str, int] = {
    "ms": 1,
    "s": 1000,
    "m": 60_000,
    "h": 3_600_000,
    "d": 86_400_000,
}


def parse_duration(duration: Duration) -> int:
    """Parse a duration such as ``"30s"`` or ``"5m"`` to milliseconds.

    Integers are taken to already be milliseconds.
    """
    if isinstance(duration, int):
        if duration < 0:
            raise ValueError(f"Invalid duration: {duration!r}")
        return duration

    match = _DURATION_PATTERN.match(duration)
    if not match:
        raise ValueError(f"Invalid duration: {duration!r}")

    value, unit = match.groups()
    return int(value) * _UNITS[unit]


def parse_ttl(ttl: Duration | None) -> int | None:
    """Parse an optional TTL; None and zero both mean entries never expire."""
    if ttl is None:
        return None
    return parse_duration(ttl) or None
