"""shhoook endpoints — definition loading, URI compilation, registry.

Public API:
    Endpoint          — compiled, immutable endpoint record
    MatchedRoute      — (endpoint, path variables) for one request
    EndpointRegistry  — sorted route table with first-match lookup
    EndpointLoadError — any load-time failure (fatal at startup)
    load_endpoints    — directory → EndpointRegistry
"""
from shhoook.endpoints.loader import EndpointLoadError, build_endpoint, load_endpoints
from shhoook.endpoints.model import Endpoint, MatchedRoute
from shhoook.endpoints.registry import EndpointRegistry

__all__ = [
    "Endpoint",
    "EndpointLoadError",
    "EndpointRegistry",
    "MatchedRoute",
    "build_endpoint",
    "load_endpoints",
]
