"""Endpoint data model.

An Endpoint is the compiled, validated form of one endpoint definition file.
It is immutable: frozen dataclass, tuple argv, read-only default mappings.
Endpoints are shared by reference across every in-flight request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from shhoook.constants import DEFAULT_ERROR_STATUS
from shhoook.endpoints.pattern import PathMatcher


@dataclass(frozen=True)
class Endpoint:
    """A compiled rule: method + URI template → argv template.

    Fields:
        uri:            URI template as declared, e.g. ``/run/:id/*rest``.
        method:         HTTP verb, compared exactly (case-sensitive).
        auth_header:    Header name the request must carry.
        auth_token:     Exact value that header must have.
        script:         argv template; element 0 is the executable.
        timeout:        Command deadline in seconds (> 0).
        ttl:            TTL string as declared (for introspection).
        error_status:   HTTP status used when the command fails.
        query_defaults: Lowest-precedence parameter defaults.
        body_defaults:  Parameter defaults applied over query_defaults.
        matcher:        PathMatcher compiled from ``uri``.
        about:          Free-text description (introspection only).
        source:         File the definition was loaded from.

    INVARIANT: uri, method, auth_header, auth_token, script are non-empty;
    timeout > 0.
    """

    uri: str
    method: str
    auth_header: str
    auth_token: str = field(repr=False)
    script: tuple[str, ...]
    timeout: float
    ttl: str
    matcher: PathMatcher = field(repr=False, compare=False)
    error_status: int = DEFAULT_ERROR_STATUS
    query_defaults: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}), compare=False
    )
    body_defaults: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}), compare=False
    )
    about: str = ""
    source: Optional[str] = None

    @property
    def wildcard(self) -> bool:
        """True if the URI template ends in a ``*name`` tail capture."""
        return self.matcher.wildcard


@dataclass(frozen=True)
class MatchedRoute:
    """The endpoint selected for one request plus its extracted path variables."""

    endpoint: Endpoint
    path_vars: Mapping[str, str]
