"""Tests for duration parsing."""

import pytest

from remote_state_caching import parse_duration
from remote_state_caching.duration import parse_ttl


class TestParseDuration:
    """Tests for parse_duration function."""

    def test_units(self) -> None:
        """Test parsing every supported unit."""
        assert parse_duration("100ms") == 100
        assert parse_duration("30s") == 30_000
        assert parse_duration("5m") == 300_000
        assert parse_duration("2h") == 7_200_000
        assert parse_duration("1d") == 86_400_000

    def test_int_passthrough(self) -> None:
        assert parse_duration(1500) == 1500

    @pytest.mark.parametrize("value", ["", "5", "5x", "m5", "1.5s", -1])
    def test_invalid(self, value: str | int) -> None:
        with pytest.raises(ValueError, match="Invalid duration"):
            parse_duration(value)


class TestParseTtl:
    """Tests for parse_ttl function."""

    def test_none_and_zero_never_expire(self) -> None:
        assert parse_ttl(None) is None
        assert parse_ttl(0) is None
        assert parse_ttl("0s") is None

    def test_parses_duration(self) -> None:
        assert parse_ttl("2s") == 2000
