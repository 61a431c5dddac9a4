"""Endpoint registry — the immutable, sorted route table.

Built once at startup and stored at ``app.state.registry``. Never mutated
afterwards, so concurrent requests read it without any locking.

Ordering:
  Endpoints are sorted by their URI template string (stable sort — equal
  templates keep discovery order). Matching returns the FIRST endpoint whose
  method and path both match, so when two templates accept the same request
  the one that sorts first always wins and the other is unreachable for it.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from shhoook.endpoints.model import Endpoint, MatchedRoute


class EndpointRegistry:
    """Read-only ordered collection of Endpoints with first-match lookup."""

    __slots__ = ("_endpoints",)

    def __init__(self, endpoints: Iterable[Endpoint]) -> None:
        self._endpoints: tuple[Endpoint, ...] = tuple(
            sorted(endpoints, key=lambda endpoint: endpoint.uri)
        )

    def match(self, method: str, path: str) -> Optional[MatchedRoute]:
        """Return the first endpoint matching method + path, or None.

        The method comparison is exact; the path is matched by each
        endpoint's compiled matcher in registry order.
        """
        for endpoint in self._endpoints:
            if endpoint.method != method:
                continue
            path_vars = endpoint.matcher.match(path)
            if path_vars is not None:
                return MatchedRoute(endpoint=endpoint, path_vars=path_vars)
        return None

    @property
    def endpoints(self) -> tuple[Endpoint, ...]:
        return self._endpoints

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(self._endpoints)

    def __len__(self) -> int:
        return len(self._endpoints)

    def __repr__(self) -> str:
        return f"EndpointRegistry({len(self._endpoints)} endpoints)"
