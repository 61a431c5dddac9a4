"""shhoook FastAPI application factory + lifespan lifecycle.

This module implements:
  - create_app() — testable application factory
  - lifespan     — @asynccontextmanager startup/shutdown sequence
  - /health      — delegated to shhoook/health.py
  - catch-all    — delegated to shhoook/gateway/dispatcher.py
  - app = create_app() — module-level instance for uvicorn

Startup sequence:
  1. load_config()        → app.state.config      (skipped if injected)
  2. load_endpoints()     → app.state.registry    (skipped if injected)
  3. log "shhoook ready"

A broken endpoint set is fatal: the lifespan raises SystemExit(1) and the
server never starts serving.
"""

from __future__ import annotations

import os
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException

from shhoook import __version__
from shhoook.config import Config, load_config
from shhoook.endpoints.loader import EndpointLoadError, load_endpoints
from shhoook.endpoints.registry import EndpointRegistry
from shhoook.gateway.dispatcher import router as dispatch_router
from shhoook.health import router as health_router
from shhoook.utils.logger import configure_logging, get_logger

# ─── Logging Setup ────────────────────────────────────────────────────────────
# Configure logging at module import time (before any other imports that may log).
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
JSON_LOGS = os.getenv("JSON_LOGS", "true").lower() == "true"

configure_logging(log_level=LOG_LEVEL, json_output=JSON_LOGS)
logger = get_logger(__name__)


def load_registry_or_exit(config: Config) -> EndpointRegistry:
    """Load the endpoint registry, converting load errors into SystemExit(1)."""
    try:
        return load_endpoints(config.endpoints.dir)
    except EndpointLoadError as exc:
        print(f"CONFIG ERROR: load endpoints: {exc}", file=sys.stderr)
        logger.error("endpoint_load_failed", error=str(exc), source=exc.source)
        raise SystemExit(1)


# ─── Lifespan ─────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan — startup and shutdown sequence.

    Config and registry injected through create_app() are used as is;
    otherwise both are loaded here.
    """
    logger.info("shhoook starting up...")

    if getattr(app.state, "config", None) is None:
        app.state.config = load_config()
        configure_logging(
            log_level=app.state.config.logging.level,
            json_output=app.state.config.logging.json,
        )
    if getattr(app.state, "registry", None) is None:
        app.state.registry = load_registry_or_exit(app.state.config)

    logger.info("shhoook ready", endpoints=len(app.state.registry))

    yield

    logger.info("shhoook shutdown complete")


# ─── Application Factory ──────────────────────────────────────────────────────


def create_app(
    registry: Optional[EndpointRegistry] = None,
    config: Optional[Config] = None,
) -> FastAPI:
    """Create and configure the shhoook FastAPI application.

    Call this function directly in tests to get an isolated app instance:
        app = create_app(registry=EndpointRegistry([...]))

    Args:
        registry: Pre-built registry. If None, loaded by the lifespan from
                  config.endpoints.dir.
        config:   Pre-loaded config. If None, loaded by the lifespan.

    Returns:
        Configured FastAPI application with lifespan, routers, and handlers.
    """
    application = FastAPI(
        title="shhoook",
        description="Configuration-driven HTTP gateway to shell commands",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    application.state.config = config
    application.state.registry = registry

    # health_router MUST be included BEFORE the catch-all dispatcher.
    application.include_router(health_router)
    application.include_router(dispatch_router)

    @application.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> PlainTextResponse:
        logger.warning(
            "HTTP exception",
            status_code=exc.status_code,
            detail=exc.detail,
            path=str(request.url.path),
        )
        return PlainTextResponse(f"{exc.detail}\n", status_code=exc.status_code)

    @application.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> PlainTextResponse:
        logger.error(
            "Unhandled exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=str(request.url.path),
        )
        return PlainTextResponse("internal server error\n", status_code=500)

    return application


# ─── Module-Level App (for uvicorn) ───────────────────────────────────────────
#   uvicorn shhoook.main:app --host 10.8.0.1 --port 8080

app = create_app()
