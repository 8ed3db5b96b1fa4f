from __future__ import annotations

import logging
import time

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("floorops.api.access")

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)


def route_template(request: Request) -> str:
    """``/v1/orders/{order_id}`` rather than the concrete path, to bound label cardinality."""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed = time.perf_counter() - started
            path = route_template(request)
            REQUEST_COUNT.labels(
                method=request.method, path=path, status_code=str(status_code)
            ).inc()
            REQUEST_LATENCY.labels(method=request.method, path=path).observe(elapsed)

            fields = {
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "duration_ms": round(elapsed * 1000, 2),
            }
            if status_code >= 500:
                logger.error("request_error", extra=fields)
            else:
                logger.info("request_complete", extra=fields)
