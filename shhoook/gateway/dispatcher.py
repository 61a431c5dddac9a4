"""Request dispatcher for shhoook — the catch-all route.

Every request that is not ``GET /health`` lands here, whatever its method.
Pipeline (each step short-circuits on failure):

  1. Route      — first registry endpoint with equal method and matching path
                  → 404 ``404 page not found`` when none
  2. Auth       — request header ``auth_header`` must equal ``auth_token``
                  exactly → 401 ``unauthorized``; nothing else runs
  3. Params     — defaults < path vars < query string < JSON body
  4. Template   — expand ``{name}`` placeholders in the argv template
                  → 400 ``bad template: ...``; no process is spawned
  5. Execute    — run argv under the endpoint timeout
                  → 200 + output, or endpoint error status + output
                    (+ timeout marker)

Deadline propagation:
  While the command runs, the client connection is polled; if the client
  disconnects first, the command task is cancelled, which kills the child's
  process group.

Everything computed here is request-scoped; the registry is only read.
"""

from __future__ import annotations

import asyncio
import hmac

from fastapi import APIRouter, Request, Response
from starlette.types import Receive, Scope, Send

from shhoook.constants import (
    DISCONNECT_POLL_INTERVAL,
    PLAIN_TEXT_MEDIA_TYPE,
    REQUEST_ID_HEADER,
)
from shhoook.endpoints.model import Endpoint
from shhoook.endpoints.registry import EndpointRegistry
from shhoook.gateway.executor import ExecutionResult, run_command
from shhoook.gateway.params import resolve_params
from shhoook.gateway.template import TemplateError, expand_argv
from shhoook.utils.logger import clear_request_id, get_logger, set_request_id
from shhoook.utils.ulid import generate_request_id

logger = get_logger(__name__)

# ─── Router ───────────────────────────────────────────────────────────────────

router = APIRouter(tags=["gateway"])


# ─── Helpers ──────────────────────────────────────────────────────────────────


def is_authorized(endpoint: Endpoint, request: Request) -> bool:
    """Exact, case-sensitive comparison of the endpoint's auth header value.

    The header value is compared as the raw bytes received on the wire
    (Starlette decodes headers as latin-1) against the UTF-8 encoded token.
    """
    provided = request.headers.get(endpoint.auth_header)
    if provided is None:
        return False
    return hmac.compare_digest(
        provided.encode("latin-1"), endpoint.auth_token.encode("utf-8")
    )


def _plain(content: str | bytes, status_code: int, request_id: str) -> Response:
    return Response(
        content=content,
        status_code=status_code,
        media_type=PLAIN_TEXT_MEDIA_TYPE,
        headers={REQUEST_ID_HEADER: request_id},
    )


async def _wait_for_disconnect(request: Request, stop: asyncio.Event) -> bool:
    """Poll the client connection until it drops (True) or ``stop`` is set (False).

    Never cancelled from outside: Starlette checks the connection inside an
    already-cancelled scope, which would absorb a task cancellation.
    """
    while not stop.is_set():
        if await request.is_disconnected():
            return True
        try:
            await asyncio.wait_for(stop.wait(), timeout=DISCONNECT_POLL_INTERVAL)
        except asyncio.TimeoutError:
            pass
    return False


async def _run_until_disconnect(
    request: Request, argv: list[str], timeout: float
) -> ExecutionResult | None:
    """Run the command; return None if the client went away first."""
    stop = asyncio.Event()
    run_task = asyncio.ensure_future(run_command(argv, timeout))
    watch_task = asyncio.ensure_future(_wait_for_disconnect(request, stop))
    try:
        await asyncio.wait({run_task, watch_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stop.set()
        if not run_task.done():
            # run_command kills the process group before re-raising.
            run_task.cancel()
        await asyncio.wait({run_task, watch_task})

    if not watch_task.cancelled() and watch_task.exception() is not None:
        logger.debug("disconnect_check_failed", error=str(watch_task.exception()))
    if run_task.cancelled():
        return None
    return run_task.result()


# ─── Dispatch handler ─────────────────────────────────────────────────────────


async def dispatch(request: Request) -> Response:
    """Route, authenticate, expand and execute one request."""
    request_id = generate_request_id()
    set_request_id(request_id)
    try:
        return await _dispatch(request, request_id)
    finally:
        clear_request_id()


async def _dispatch(request: Request, request_id: str) -> Response:
    registry: EndpointRegistry = request.app.state.registry
    method = request.method
    path = request.scope["path"]

    # ── 1. Route ──────────────────────────────────────────────────────────────
    route = registry.match(method, path)
    if route is None:
        logger.info("route_not_found", method=method, path=path)
        return _plain("404 page not found\n", 404, request_id)
    endpoint = route.endpoint

    # ── 2. Auth: short-circuits before any body read or process spawn ─────────
    if not is_authorized(endpoint, request):
        logger.warning(
            "auth_rejected",
            method=method,
            path=path,
            uri=endpoint.uri,
            header=endpoint.auth_header,
        )
        return _plain("unauthorized\n", 401, request_id)

    # ── 3. Params ─────────────────────────────────────────────────────────────
    try:
        body = await request.body()
    except Exception as exc:  # noqa: BLE001
        logger.debug("body_unreadable", error=str(exc), error_type=type(exc).__name__)
        body = b""
    params = resolve_params(
        endpoint,
        route.path_vars,
        request.query_params.multi_items(),
        body,
    )

    # ── 4. Template ───────────────────────────────────────────────────────────
    try:
        argv = expand_argv(endpoint.script, params)
    except TemplateError as exc:
        logger.warning("template_error", uri=endpoint.uri, error=str(exc))
        return _plain(f"bad template: {exc}\n", 400, request_id)

    # ── 5. Execute ────────────────────────────────────────────────────────────
    result = await _run_until_disconnect(request, argv, endpoint.timeout)
    if result is None:
        logger.info("client_disconnected", method=method, path=path, uri=endpoint.uri)
        return _plain(b"", endpoint.error_status, request_id)

    status_code = 200 if result.ok else endpoint.error_status
    logger.info(
        "request_executed",
        method=method,
        path=path,
        uri=endpoint.uri,
        status_code=status_code,
        returncode=result.returncode,
        timed_out=result.timed_out,
        duration_ms=round(result.duration_ms, 1),
    )
    return _plain(result.output, status_code, request_id)


class CatchAllEndpoint:
    """Raw ASGI endpoint for the catch-all route.

    Starlette pins a plain-function route to GET/HEAD when no methods are
    given; an ASGI callable keeps ``methods=None``, so every verb (custom
    ones included) reaches dispatch() and unmatched verbs get 404, not 405.
    """

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        response = await dispatch(Request(scope, receive))
        await response(scope, receive, send)


router.add_route("/{path:path}", CatchAllEndpoint(), include_in_schema=False)
