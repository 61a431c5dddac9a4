"""Read-only catalog of loaded endpoints.

Produces the JSON document printed by ``shhoook catalog``. Auth header
names and tokens are never included. The command can itself be exposed as
an endpoint (see conf/catalog.json); children only get the sandbox PATH, so
the script must name the installed ``shhoook`` executable by absolute path.
"""

from __future__ import annotations

from typing import Any

from shhoook.endpoints.registry import EndpointRegistry


def build_catalog(registry: EndpointRegistry, config_dir: str) -> dict[str, Any]:
    """Describe every endpoint in registry order."""
    items = [
        {
            "uri": endpoint.uri,
            "method": endpoint.method,
            "ttl": endpoint.ttl,
            "error": endpoint.error_status,
            "about": endpoint.about,
        }
        for endpoint in registry
    ]
    return {
        "service": "shhoook",
        "config_dir": config_dir,
        "count": len(items),
        "endpoints": items,
    }
