"""Request id generation for shhoook.

Every dispatched request gets a 26-character ULID (Crockford Base32,
lexicographically sortable by creation time). The same id is bound into the
structlog context for the request and returned in the X-Shhoook-Request-ID
response header, so a caller can quote it when asking about a failed run.

Uses the `python-ulid` library — do NOT hand-roll ULID generation.
"""

from __future__ import annotations

from ulid import ULID


def generate_request_id() -> str:
    """Generate a new request id as a 26-character uppercase ULID string."""
    return str(ULID())
