"""Config loading for shhoook.

Reads an optional YAML file (``shhoook.yaml``) and applies environment
variable overrides. Raises SystemExit on parse errors or an invalid listen
address. If no config file is found, returns default values (safe to run
without a config file — the endpoint directory is what matters).

Config search order:
  1. ``config_path`` argument (if provided — for testing or explicit override)
  2. SHHOOOK_CONFIG environment variable (if set)
  3. ``./shhoook.yaml`` (working directory — for development)
  4. ``/etc/shhoook/shhoook.yaml`` (system-wide — for production deployments)

Environment variable overrides (take precedence over the file):
  LISTEN_ADDR — server.listen, must be a literal ``IP:port``
  CONFIG_DIR  — endpoints.dir, directory holding endpoint definitions
  LOG_LEVEL   — logging.level
  JSON_LOGS   — logging.json ("true"/"false")
"""

from __future__ import annotations

import ipaddress
import os
import sys
from dataclasses import dataclass, field
from typing import NoReturn, Optional

import yaml

from shhoook.constants import DEFAULT_CONFIG_DIR, DEFAULT_LISTEN_ADDR
from shhoook.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATHS = [
    "shhoook.yaml",
    "/etc/shhoook/shhoook.yaml",
]

# Addresses that expose the gateway on every interface.
_UNSPECIFIED_HOSTS: frozenset[str] = frozenset({"0.0.0.0", "::"})


# ─── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass
class ServerConfig:
    """HTTP listener configuration.

    listen: ``IP:port`` — the host part must be a literal IPv4 or IPv6
            address (IPv6 in brackets). Hostnames are rejected at load time.
    """

    listen: str = DEFAULT_LISTEN_ADDR

    @property
    def host(self) -> str:
        return split_listen_addr(self.listen)[0]

    @property
    def port(self) -> int:
        return split_listen_addr(self.listen)[1]


@dataclass
class EndpointsConfig:
    """Where endpoint definitions are discovered."""

    dir: str = DEFAULT_CONFIG_DIR


@dataclass
class LoggingConfig:
    level: str = "INFO"
    json: bool = True


@dataclass
class Config:
    """Root configuration object.

    All fields have safe defaults — shhoook can start without any config file.
    """

    server: ServerConfig = field(default_factory=ServerConfig)
    endpoints: EndpointsConfig = field(default_factory=EndpointsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    path: Optional[str] = None  # Path to the loaded config file, if any

    @classmethod
    def defaults(cls) -> "Config":
        """Return a fully-default Config (no file required)."""
        return cls()

    @classmethod
    def from_dict(cls, raw: dict, path: Optional[str] = None) -> "Config":
        """Construct Config from a parsed YAML dict.

        Merges user-supplied values onto defaults; unknown keys are silently ignored.
        """
        server_raw = raw.get("server") or {}
        endpoints_raw = raw.get("endpoints") or {}
        logging_raw = raw.get("logging") or {}

        return cls(
            server=ServerConfig(
                listen=str(server_raw.get("listen", DEFAULT_LISTEN_ADDR)),
            ),
            endpoints=EndpointsConfig(
                dir=str(endpoints_raw.get("dir", DEFAULT_CONFIG_DIR)),
            ),
            logging=LoggingConfig(
                level=str(logging_raw.get("level", "INFO")),
                json=bool(logging_raw.get("json", True)),
            ),
            path=path,
        )


# ─── Listen address validation ────────────────────────────────────────────────


def split_listen_addr(listen: str) -> tuple[str, int]:
    """Split and validate a literal ``IP:port`` listen address.

    Accepts ``10.8.0.1:8080`` and ``[::1]:8080``. Hostnames (``localhost:8080``),
    a missing port, or a port outside 1-65535 raise ValueError.

    Returns:
        (host, port) with IPv6 brackets removed from host.
    """
    host, sep, port_str = listen.rpartition(":")
    if not sep or not host:
        raise ValueError(f"LISTEN_ADDR must be IP:port, got {listen!r}")

    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        # Bare IPv6 without brackets is ambiguous with the port separator.
        raise ValueError(f"LISTEN_ADDR must be IP:port, got {listen!r}")

    try:
        ipaddress.ip_address(host)
    except ValueError:
        raise ValueError(f"LISTEN_ADDR must be IP:port, got {listen!r}") from None

    if not port_str.isdigit() or not 0 < int(port_str) <= 65535:
        raise ValueError(f"LISTEN_ADDR must be IP:port, got {listen!r}")

    return host, int(port_str)


# ─── Config loading ───────────────────────────────────────────────────────────


def _fail(msg: str) -> NoReturn:
    print(f"CONFIG ERROR: {msg}", file=sys.stderr)
    raise SystemExit(1)


def load_config(config_path: Optional[str] = None) -> Config:
    """Load and validate shhoook configuration.

    If no file is found at any of the search paths, returns default Config
    (not an error). If a file is found but invalid, writes the error to stderr
    and raises SystemExit(1). Environment overrides are applied in both cases,
    then the listen address is validated.

    Raises:
        SystemExit(1): On YAML parse error, non-mapping YAML root, or a
                       listen address that is not a literal ``IP:port``.
    """
    search_paths: list[str] = []
    if config_path:
        search_paths.append(config_path)
    env_config = os.environ.get("SHHOOOK_CONFIG")
    if env_config:
        search_paths.append(env_config)
    search_paths.extend(DEFAULT_CONFIG_PATHS)

    found_path: Optional[str] = None
    for candidate in search_paths:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            found_path = expanded
            break

    if found_path is None:
        logger.info("no_config_file", searched=search_paths)
        config = Config.defaults()
    else:
        config = _load_file(found_path)

    _apply_env_overrides(config)

    try:
        host, _port = split_listen_addr(config.server.listen)
    except ValueError as exc:
        _fail(str(exc))

    if host in _UNSPECIFIED_HOSTS:
        logger.warning(
            "SECURITY WARNING: shhoook is configured to listen on all interfaces. "
            "Every reachable client can invoke configured commands with a valid token.",
            listen=config.server.listen,
        )

    logger.info(
        "config_loaded",
        path=found_path,
        listen=config.server.listen,
        endpoints_dir=config.endpoints.dir,
    )
    return config


def _load_file(found_path: str) -> Config:
    try:
        with open(found_path) as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        _fail(
            f"Failed to parse {found_path}: {exc}\n"
            "shhoook refuses to start with an invalid config."
        )
    except OSError as exc:
        _fail(f"Could not read {found_path}: {exc}")

    if raw is None:
        # Empty file, nothing to merge
        return Config(path=found_path)
    if not isinstance(raw, dict):
        _fail(
            f"{found_path} is not a valid YAML mapping.\n"
            "The config file must be a YAML dictionary at the top level."
        )
    return Config.from_dict(raw, path=found_path)


def _apply_env_overrides(config: Config) -> None:
    """Apply environment variable overrides to a Config object in-place.

    Called for both file-loaded and default configs so env vars always take
    precedence over any file value.
    """
    listen = os.environ.get("LISTEN_ADDR")
    if listen:
        config.server.listen = listen

    conf_dir = os.environ.get("CONFIG_DIR")
    if conf_dir:
        config.endpoints.dir = conf_dir

    level = os.environ.get("LOG_LEVEL")
    if level:
        config.logging.level = level

    json_logs = os.environ.get("JSON_LOGS")
    if json_logs:
        config.logging.json = json_logs.lower() == "true"
