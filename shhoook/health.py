"""Health endpoint for shhoook.

``GET /health`` → 200 ``ok``. No auth, no registry lookup: this route is
registered before the catch-all dispatcher, so it takes precedence over any
endpoint whose template would also match ``/health``. Other methods on
``/health`` are not handled here and fall through to the dispatcher.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_class=PlainTextResponse)
async def health() -> PlainTextResponse:
    """Liveness check for supervisors and load balancers."""
    return PlainTextResponse("ok")
