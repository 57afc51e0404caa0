"""Log method, path, status and timing of every request; feed status buckets into metrics."""
import logging
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from src.monitoring.metrics import record_request

logger = logging.getLogger(__name__)

RESPONSE_TIME_HEADER = "X-Response-Time-Ms"


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request; 5xx responses are logged at WARNING."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        record_request(response.status_code)
        response.headers[RESPONSE_TIME_HEADER] = f"{duration_ms:.1f}"
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "request method=%s path=%s query=%s status=%s duration_ms=%.1f client=%s",
            request.method,
            request.url.path,
            request.url.query or "-",
            response.status_code,
            duration_ms,
            _client_ip(request),
        )
        return response
