"""Shared constants for shhoook.

Defaults and fixed values used across modules are defined here.
No magic numbers in other modules — import from here.
"""

# ─── Endpoint definition defaults ─────────────────────────────────────────────

# TTL applied when a definition omits the `ttl` field.
DEFAULT_TTL: str = "8s"

# HTTP status returned when a command exits non-zero or times out,
# unless the definition sets `error` to a non-zero value.
DEFAULT_ERROR_STATUS: int = 500

# Definition file extensions picked up by the loader (compared lowercased).
DEFINITION_EXTENSIONS: frozenset[str] = frozenset({".json", ".yaml", ".yml"})

# ─── Process sandbox ──────────────────────────────────────────────────────────

# The ONLY environment variable a child process receives.
SANDBOX_PATH: str = "/usr/sbin:/usr/bin:/sbin:/bin"

# Appended to the captured output when the deadline expired.
TIMEOUT_MARKER: bytes = b"\n(timeout)\n"

# Read size for draining the combined stdout/stderr pipe.
OUTPUT_CHUNK_BYTES: int = 65_536

# Interval between client-disconnect checks while a command is running (seconds).
DISCONNECT_POLL_INTERVAL: float = 0.25

# ─── HTTP surface ─────────────────────────────────────────────────────────────

PLAIN_TEXT_MEDIA_TYPE: str = "text/plain; charset=utf-8"

# Response header carrying the per-request ULID (correlates with log lines).
REQUEST_ID_HEADER: str = "X-Shhoook-Request-ID"

# ─── Server defaults ──────────────────────────────────────────────────────────

DEFAULT_LISTEN_ADDR: str = "127.0.0.1:8080"
DEFAULT_CONFIG_DIR: str = "./conf"

# Uvicorn keep-alive timeout in seconds. Low value reduces the Slow Loris window.
UVICORN_TIMEOUT_KEEP_ALIVE: int = 5

# ─── Parameter rendering ──────────────────────────────────────────────────────

# JSON numbers whose decimal exponent lies beyond this (float range) are
# rendered in scientific notation instead of expanded digits.
MAX_PLAIN_NUMBER_EXPONENT: int = 308
