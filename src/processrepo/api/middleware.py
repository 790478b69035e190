"""Middleware: request timing and body size limits."""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

_DEPLOYMENT_PATHS = ("/deployments",)
_MB = 1024 * 1024


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Add X-Request-Duration header with processing time."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.1f}"
        return response


class RequestBodyLimitMiddleware(BaseHTTPMiddleware):
    """Reject request bodies that exceed size limits.

    Deployment uploads get their own, larger limit (5 MB by default); all
    other endpoints default to 1 MB. The Content-Length header gives a cheap
    early rejection; the streamed byte count catches chunked bodies without
    a header. Consumed bytes are cached on ``request._body`` so handlers can
    still read them.
    """

    def __init__(
        self, app: ASGIApp, deployment_limit_mb: int = 5, default_limit_mb: int = 1
    ) -> None:
        super().__init__(app)
        self._deployment_limit_mb = deployment_limit_mb
        self._default_limit_mb = default_limit_mb

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path.endswith(_DEPLOYMENT_PATHS):
            limit_mb = self._deployment_limit_mb
        else:
            limit_mb = self._default_limit_mb
        limit = limit_mb * _MB

        content_length = request.headers.get("content-length")
        if content_length is not None and content_length.isdigit() and int(content_length) > limit:
            return _too_large(limit_mb)

        if request.method in ("POST", "PUT", "PATCH"):
            chunks: list[bytes] = []
            total = 0
            async for chunk in request.stream():
                total += len(chunk)
                if total > limit:
                    return _too_large(limit_mb)
                chunks.append(chunk)
            request._body = b"".join(chunks)  # noqa: SLF001

        return await call_next(request)


def _too_large(limit_mb: int) -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content={"detail": f"Request body too large (max {limit_mb} MB)"},
    )
