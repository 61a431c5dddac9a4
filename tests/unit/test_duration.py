"""Unit tests for TTL duration parsing (shhoook/endpoints/duration.py)."""

from __future__ import annotations

import pytest

from shhoook.endpoints.duration import DurationError, parse_duration


class TestParseDuration:
    @pytest.mark.parametrize(
        "text,seconds",
        [
            ("8s", 8.0),
            ("1s", 1.0),
            ("300ms", 0.3),
            ("2m", 120.0),
            ("1h", 3600.0),
            ("1.5h", 5400.0),
            ("1m30s", 90.0),
            ("1h2m3s", 3723.0),
            ("250us", 0.00025),
            ("250µs", 0.00025),
            ("1000000ns", 0.001),
            (".5s", 0.5),
        ],
    )
    def test_valid(self, text: str, seconds: float) -> None:
        assert parse_duration(text) == pytest.approx(seconds)

    def test_ms_is_not_minutes(self) -> None:
        assert parse_duration("5ms") == pytest.approx(0.005)

    @pytest.mark.parametrize(
        "text",
        ["", "8", "s", "8x", "8 s", "1..5s", ".s", "abc", "8sec"],
    )
    def test_malformed(self, text: str) -> None:
        with pytest.raises(DurationError):
            parse_duration(text)

    @pytest.mark.parametrize("text", ["0s", "0ms", "-1s", "+1s"])
    def test_non_positive_or_signed(self, text: str) -> None:
        with pytest.raises(DurationError):
            parse_duration(text)

    def test_error_is_value_error(self) -> None:
        assert issubclass(DurationError, ValueError)
