"""Command-line entry point for shhoook.

Subcommands:
  serve    (default) validate config + endpoints, then run uvicorn
  check    load config + endpoints, print the route table, exit 0/1
  catalog  print the endpoint catalog as JSON

The server binds to the literal IP and port from LISTEN_ADDR / server.listen
(hostnames are rejected when the config is loaded). Endpoints are loaded and
validated BEFORE uvicorn starts, so a broken definition never gets a socket.

Usage:
    shhoook                          # via pyproject.toml [project.scripts]
    shhoook check -c shhoook.yaml
    python -m shhoook.run catalog
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional

import uvicorn

from shhoook.catalog import build_catalog
from shhoook.config import Config, load_config
from shhoook.constants import UVICORN_TIMEOUT_KEEP_ALIVE
from shhoook.main import create_app, load_registry_or_exit
from shhoook.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="shhoook",
        description="Configuration-driven HTTP gateway to shell commands",
    )
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to YAML configuration file (default: ./shhoook.yaml, /etc/shhoook/shhoook.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.add_parser("serve", help="Run the HTTP gateway (default)")
    subparsers.add_parser("check", help="Validate endpoint definitions and list routes")
    subparsers.add_parser("catalog", help="Print loaded endpoints as JSON")

    return parser.parse_args(argv)


def _serve(config: Config) -> None:
    registry = load_registry_or_exit(config)
    app = create_app(registry=registry, config=config)

    logger.info("listening", url=f"http://{config.server.listen}")
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        timeout_keep_alive=UVICORN_TIMEOUT_KEEP_ALIVE,
        server_header=False,
        log_level=config.logging.level.lower(),
    )


def _check(config: Config) -> None:
    registry = load_registry_or_exit(config)
    print(f"{len(registry)} endpoints loaded from {config.endpoints.dir}")
    for endpoint in registry:
        print(f"  {endpoint.method:<7} {endpoint.uri}  ({endpoint.source})")


def _catalog(config: Config) -> None:
    registry = load_registry_or_exit(config)
    catalog = build_catalog(registry, config.endpoints.dir)
    print(json.dumps(catalog, ensure_ascii=False, indent=2))


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the shhoook CLI.

    Raises:
        SystemExit(1): invalid config, listen address, or endpoint set.
    """
    args = parse_args(argv)
    command = args.command or "serve"

    # catalog/check write to stdout; keep log lines off it.
    quiet = command in ("check", "catalog")
    if quiet:
        configure_logging(log_level="ERROR")

    config = load_config(args.config)
    if args.verbose:
        config.logging.level = "DEBUG"

    if not quiet:
        configure_logging(log_level=config.logging.level, json_output=config.logging.json)

    if command == "serve":
        _serve(config)
    elif command == "check":
        _check(config)
    elif command == "catalog":
        _catalog(config)
    else:  # pragma: no cover
        sys.exit(2)


if __name__ == "__main__":
    main()
