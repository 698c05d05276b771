"""
ASGI middleware for tracking HTTP request metrics.
Records request count, duration, and errors per route.
"""
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from s3gateway.utils.metrics import http_requests_total, http_request_duration_seconds, errors_total

# Paths not worth recording
SKIPPED_PATHS = ("/metrics", "/api/health")


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to track HTTP metrics for Prometheus."""

    async def dispatch(self, request: Request, call_next):
        """Process request and record metrics."""
        if request.url.path in SKIPPED_PATHS:
            return await call_next(request)

        start_time = time.time()
        method = request.method

        try:
            response = await call_next(request)
        except Exception:
            errors_total.labels(error_type="exception").inc()
            raise

        # Object keys travel as query parameters, so the route template
        # keeps label cardinality bounded
        path = self._route_path(request)

        http_requests_total.labels(
            method=method,
            path=path,
            status=response.status_code
        ).inc()

        # Time to first byte for streaming downloads
        http_request_duration_seconds.labels(
            method=method,
            path=path
        ).observe(time.time() - start_time)

        if response.status_code >= 400:
            errors_total.labels(error_type=f"{response.status_code // 100}xx").inc()

        return response

    @staticmethod
    def _route_path(request: Request) -> str:
        """Matched route template, or a fixed label for unmatched paths."""
        route = request.scope.get("route")
        return getattr(route, "path", None) or "unmatched"
