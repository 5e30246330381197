"""Per-request container reload and error mapping for FastAPI hosts.

Manifesto:
    In development every request should see the current component code,
    so the container is rebuilt before the request is handled.  The
    rebuild and the wait for readers of the old container block, so they
    run in the threadpool instead of on the event loop.

Tags:
    hitch, api, middleware, reload, starlette

Doc-Types:
    api-reference
"""

from __future__ import annotations

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from hitch.core.errors import ContainerNotReadyError
from hitch.framework.hooks import HookPoint, HookRegistry


class ContainerReloadMiddleware(BaseHTTPMiddleware):
    """Fire ``ON_RELOAD`` before every request."""

    def __init__(self, app: ASGIApp, hooks: HookRegistry):
        super().__init__(app)
        self.hooks = hooks

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        await run_in_threadpool(self.hooks.run, HookPoint.ON_RELOAD, request.app)
        return await call_next(request)


async def container_not_ready_handler(request: Request, exc: ContainerNotReadyError) -> JSONResponse:
    """Map a missing container to ``503 Service Unavailable`` (RFC 7807 body)."""
    return JSONResponse(
        status_code=503,
        content={
            "type": "about:blank",
            "title": "Service Unavailable",
            "status": 503,
            "detail": exc.message,
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )
