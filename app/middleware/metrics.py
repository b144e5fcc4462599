import re
import time

from prometheus_client import Counter, Gauge, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "path"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

REQUESTS_IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "Requests currently being served",
    ["method"],
)

# Probes and scrapes would drown out real traffic.
_UNTRACKED_PREFIXES = ("/metrics", "/health")

# Order ids are the only dynamic path segment; collapse them to keep label cardinality flat.
_ORDER_ID = re.compile(r"/[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}")


def normalise_path(path: str) -> str:
    return _ORDER_ID.sub("/{order_id}", path)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path.startswith(_UNTRACKED_PREFIXES):
            return await call_next(request)

        path = normalise_path(request.url.path)
        in_progress = REQUESTS_IN_PROGRESS.labels(method=request.method)
        in_progress.inc()
        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            in_progress.dec()
        elapsed = time.perf_counter() - start

        REQUEST_COUNT.labels(
            method=request.method,
            path=path,
            status=str(response.status_code),
        ).inc()
        REQUEST_LATENCY.labels(method=request.method, path=path).observe(elapsed)

        return response
