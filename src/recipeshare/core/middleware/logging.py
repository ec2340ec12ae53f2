"""Access logging for the HTTP boundary.

Binds the request's method, path and claimed author to the log context so
service log lines carry them, then writes one line when the response is
ready. The password header is never read here.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from recipeshare.observability.logging import bind_context, get_logger


if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.types import ASGIApp

logger = get_logger(__name__)

AUTHOR_ID_HEADER = "X-Author-Id"
DEFAULT_EXCLUDED = frozenset({"/health", "/metrics", "/favicon.ico"})


def claimed_author(request: Request) -> int | None:
    """Author id the caller claims, ``None`` when absent or malformed."""
    raw = request.headers.get(AUTHOR_ID_HEADER)
    if raw is None or not raw.strip().isdigit():
        return None
    return int(raw)


class LoggingMiddleware(BaseHTTPMiddleware):
    """One completion line per request; server errors at warning level."""

    def __init__(self, app: ASGIApp, *, exclude_paths: set[str] | None = None) -> None:
        super().__init__(app)
        self.exclude_paths = frozenset(exclude_paths or DEFAULT_EXCLUDED)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        bind_context(
            method=request.method,
            path=request.url.path,
            author_id=claimed_author(request),
        )

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)

        log = logger.warning if response.status_code >= 500 else logger.info
        log("Request completed", status_code=response.status_code, duration_ms=duration_ms)
        return response
