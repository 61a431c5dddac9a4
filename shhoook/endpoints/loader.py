"""Endpoint definition loader for shhoook.

Discovers definition files under the endpoint directory (recursively,
``.json`` / ``.yaml`` / ``.yml``, extension compared case-insensitively),
validates each one and compiles it into an Endpoint.

Definition schema::

    {
      "uri":    "/run/:id/*rest",          required
      "method": "POST",                    required
      "auth":   "X-Token:SECRET",          required, "Header:Token"
      "script": ["bash", "-lc", "echo {id}"],  required, non-empty
      "ttl":    "8s",                      optional, default "8s"
      "error":  500,                       optional, default 500
      "query":  {"name": "default"},       optional
      "body":   {"name": "default"},       optional
      "about":  "free text"                optional (also "desc"/"description")
    }

Validation order per definition (first failure wins):
  required fields → auth split → ttl → error status → defaults → uri compile

Loading is all-or-nothing: ANY invalid definition, an unreadable directory,
or zero definitions raises EndpointLoadError. There is no partial registry.
"""

from __future__ import annotations

import json
import os
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

import yaml

from shhoook.constants import DEFAULT_ERROR_STATUS, DEFAULT_TTL, DEFINITION_EXTENSIONS
from shhoook.endpoints.duration import DurationError, parse_duration
from shhoook.endpoints.model import Endpoint
from shhoook.endpoints.pattern import PatternError, compile_template
from shhoook.endpoints.registry import EndpointRegistry
from shhoook.utils.logger import get_logger

logger = get_logger(__name__)

_ABOUT_KEYS = ("about", "desc", "description")


class EndpointLoadError(ValueError):
    """Raised when an endpoint definition (or the definition set) is invalid.

    ``source`` identifies the offending file, or the directory when the
    failure is not attributable to a single file.
    """

    def __init__(self, source: Optional[str], message: str) -> None:
        self.source = source
        self.message = message
        super().__init__(f"{source}: {message}" if source else message)


# ─── Single definition ────────────────────────────────────────────────────────


def parse_auth(auth: str) -> tuple[str, str]:
    """Split ``"Header:Token"`` into (header, token), both stripped.

    Only the first ``:`` separates — the token may itself contain colons.

    Raises:
        ValueError: no ``:`` separator, or an empty header / token.
    """
    header, sep, token = auth.partition(":")
    if not sep:
        raise ValueError("bad auth format, want Header:Token")
    header, token = header.strip(), token.strip()
    if not header or not token:
        raise ValueError("empty header/token")
    return header, token


def _string_map(raw: Any, field_name: str, source: Optional[str]) -> Mapping[str, str]:
    if raw is None:
        return MappingProxyType({})
    if not isinstance(raw, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in raw.items()
    ):
        raise EndpointLoadError(source, f"{field_name} must be a mapping of string to string")
    return MappingProxyType(dict(raw))


def build_endpoint(raw: Any, source: Optional[str] = None) -> Endpoint:
    """Validate one raw definition and compile it into an Endpoint.

    Args:
        raw:    Decoded definition (a mapping).
        source: Where it came from — used in error messages only.

    Raises:
        EndpointLoadError: on the first validation failure.
    """
    if not isinstance(raw, dict):
        raise EndpointLoadError(source, "definition must be a JSON/YAML object")

    uri = raw.get("uri") or ""
    method = raw.get("method") or ""
    auth = raw.get("auth") or ""
    script = raw.get("script") or []

    if not isinstance(uri, str) or not isinstance(method, str) or not isinstance(auth, str):
        raise EndpointLoadError(source, "uri/method/auth must be strings")
    if not isinstance(script, list) or not all(isinstance(arg, str) for arg in script):
        raise EndpointLoadError(source, "script must be a list of strings")

    # ── Required fields ───────────────────────────────────────────────────────
    if not uri or not method or not auth or not script:
        raise EndpointLoadError(source, "missing required fields (uri/method/auth/script)")

    # ── Auth ──────────────────────────────────────────────────────────────────
    try:
        auth_header, auth_token = parse_auth(auth)
    except ValueError as exc:
        raise EndpointLoadError(source, str(exc)) from exc

    # ── TTL ───────────────────────────────────────────────────────────────────
    ttl = raw.get("ttl") or DEFAULT_TTL
    if not isinstance(ttl, str):
        raise EndpointLoadError(source, f"bad ttl: expected a duration string, got {ttl!r}")
    try:
        timeout = parse_duration(ttl)
    except DurationError as exc:
        raise EndpointLoadError(source, f"bad ttl: {exc}") from exc

    # ── Error status ──────────────────────────────────────────────────────────
    error_status = raw.get("error") or DEFAULT_ERROR_STATUS
    if isinstance(error_status, bool) or not isinstance(error_status, int):
        raise EndpointLoadError(source, f"error must be an integer HTTP status, got {error_status!r}")
    if not 100 <= error_status <= 599:
        raise EndpointLoadError(source, f"error status out of range: {error_status}")

    # ── Parameter defaults ────────────────────────────────────────────────────
    query_defaults = _string_map(raw.get("query"), "query", source)
    body_defaults = _string_map(raw.get("body"), "body", source)

    # ── URI ───────────────────────────────────────────────────────────────────
    try:
        matcher = compile_template(uri)
    except PatternError as exc:
        raise EndpointLoadError(source, f"bad uri: {exc}") from exc

    about = next((raw[key] for key in _ABOUT_KEYS if raw.get(key)), "")

    return Endpoint(
        uri=uri,
        method=method,
        auth_header=auth_header,
        auth_token=auth_token,
        script=tuple(script),
        timeout=timeout,
        ttl=ttl,
        matcher=matcher,
        error_status=error_status,
        query_defaults=query_defaults,
        body_defaults=body_defaults,
        about=str(about),
        source=source,
    )


# ─── Files and directories ────────────────────────────────────────────────────


def read_definition(path: str) -> Any:
    """Decode one definition file (JSON for ``.json``, YAML otherwise).

    Raises:
        EndpointLoadError: unreadable file or decode error.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            if path.lower().endswith(".json"):
                return json.load(fh)
            return yaml.safe_load(fh)
    except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as exc:
        raise EndpointLoadError(path, f"cannot decode definition: {exc}") from exc
    except OSError as exc:
        raise EndpointLoadError(path, f"cannot read definition: {exc}") from exc


def discover_definitions(directory: str) -> list[str]:
    """Return definition file paths under ``directory``, sorted, recursive.

    Raises:
        EndpointLoadError: the directory (or a subdirectory) cannot be read.
    """
    if not os.path.isdir(directory):
        raise EndpointLoadError(directory, "endpoint directory does not exist")

    def _raise(exc: OSError) -> None:
        raise EndpointLoadError(directory, f"cannot read endpoint directory: {exc}")

    found: list[str] = []
    for root, dirs, files in os.walk(directory, onerror=_raise):
        dirs.sort()
        for name in sorted(files):
            if os.path.splitext(name)[1].lower() in DEFINITION_EXTENSIONS:
                found.append(os.path.join(root, name))
    return found


def build_registry(definitions: Iterable[tuple[Optional[str], Any]]) -> EndpointRegistry:
    """Compile (source, raw) pairs into a sorted registry.

    Raises:
        EndpointLoadError: any invalid definition, or none at all.
    """
    endpoints = [build_endpoint(raw, source) for source, raw in definitions]
    if not endpoints:
        raise EndpointLoadError(None, "no endpoint definitions given")
    return EndpointRegistry(endpoints)


def load_endpoints(directory: str) -> EndpointRegistry:
    """Load every definition under ``directory`` into an EndpointRegistry.

    Fails fast: the first invalid file aborts loading entirely.

    Raises:
        EndpointLoadError: invalid definition, unreadable directory, or
                           zero definitions found.
    """
    endpoints: list[Endpoint] = []
    for path in discover_definitions(directory):
        endpoint = build_endpoint(read_definition(path), source=path)
        logger.info(
            "endpoint_loaded",
            method=endpoint.method,
            uri=endpoint.uri,
            ttl=endpoint.ttl,
            source=path,
        )
        endpoints.append(endpoint)

    if not endpoints:
        raise EndpointLoadError(directory, "no endpoint configs found")

    registry = EndpointRegistry(endpoints)
    logger.info("registry_ready", count=len(registry), directory=directory)
    return registry
