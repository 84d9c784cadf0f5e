"""
Request logging middleware. Logs method, path, status, duration and, for the
market endpoints, the cache outcome (X-Cache header).
Never logs headers, body, or query params.
"""
import logging
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request: method, path (no query), status_code, duration_ms, cache."""

    async def dispatch(self, request: Request, call_next) -> Response:
        method = request.method
        path = request.scope.get("path", "")
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        status = response.status_code
        cache = response.headers.get("X-Cache", "-")
        logger.log(
            _level_for(status),
            "request_finished method=%s path=%s status=%s duration_ms=%.1f cache=%s",
            method, path, status, duration_ms, cache,
            extra={"extra": {"status": status, "cache": cache}},
        )
        return response
