"""TTL duration parsing.

Endpoint definitions declare their timeout as a duration string: a sequence
of decimal numbers, each with an optional fraction and a mandatory unit,
e.g. ``"300ms"``, ``"8s"``, ``"1m30s"``, ``"1.5h"``.

Valid units: ``ns``, ``us`` (``µs``), ``ms``, ``s``, ``m``, ``h``.

Only positive durations are accepted — a command deadline of zero (or less)
would kill every command before it starts.
"""

from __future__ import annotations

_UNIT_SECONDS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # U+00B5 micro sign
    "μs": 1e-6,  # U+03BC greek mu
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

# Longest first so "ms" is not read as "m" followed by a stray "s".
_UNITS_BY_LENGTH = sorted(_UNIT_SECONDS, key=len, reverse=True)


class DurationError(ValueError):
    """Raised when a TTL string cannot be parsed as a positive duration."""


def parse_duration(text: str) -> float:
    """Parse a duration string into seconds.

    Raises:
        DurationError: empty string, missing or unknown unit, malformed number,
                       sign prefix, or a total that is not strictly positive.
    """
    if not text:
        raise DurationError("empty duration")
    if text[0] in "+-":
        raise DurationError(f"duration must be positive: {text!r}")

    total = 0.0
    pos = 0
    while pos < len(text):
        start = pos
        while pos < len(text) and (text[pos].isdigit() or text[pos] == "."):
            pos += 1
        number = text[start:pos]
        if not number or number == "." or number.count(".") > 1:
            raise DurationError(f"invalid duration {text!r}")

        for unit in _UNITS_BY_LENGTH:
            if text.startswith(unit, pos):
                break
        else:
            raise DurationError(f"missing or unknown unit in duration {text!r}")

        total += float(number) * _UNIT_SECONDS[unit]
        pos += len(unit)

    if total <= 0:
        raise DurationError(f"duration must be positive: {text!r}")
    return total
