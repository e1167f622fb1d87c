"""FastAPI middleware for Prometheus metrics instrumentation."""
import re
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.metrics import (
    HTTP_REQUESTS_TOTAL,
    HTTP_REQUEST_DURATION_SECONDS,
    HTTP_REQUESTS_IN_PROGRESS,
)

# Segments that follow these collection names are resource IDs
_ID_PARENTS = {"accounts", "locations", "reviews", "localPosts", "posting"}
_STATIC_SEGMENTS = _ID_PARENTS | {"stats", "generate-reply"}
_SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)+$")


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect HTTP request metrics for Prometheus."""

    EXCLUDE_PATHS = {"/metrics", "/health"}

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process request and collect metrics."""
        path = request.url.path
        method = request.method

        if path in self.EXCLUDE_PATHS:
            return await call_next(request)

        endpoint = self._normalize_endpoint(path)

        HTTP_REQUESTS_IN_PROGRESS.labels(method=method, endpoint=endpoint).inc()
        start_time = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            duration = time.perf_counter() - start_time
            HTTP_REQUEST_DURATION_SECONDS.labels(
                method=method, endpoint=endpoint
            ).observe(duration)
            HTTP_REQUESTS_IN_PROGRESS.labels(method=method, endpoint=endpoint).dec()
            HTTP_REQUESTS_TOTAL.labels(
                method=method, endpoint=endpoint, status_code=str(status_code)
            ).inc()

        return response

    def _normalize_endpoint(self, path: str) -> str:
        """Normalize URL path to avoid high cardinality from path parameters.

        Converts paths like /api/locations/123456/reviews to
        /api/locations/{id}/reviews
        """
        segments = path.strip("/").split("/")

        normalized = []
        for i, segment in enumerate(segments):
            previous = segments[i - 1] if i > 0 else ""
            if segment in _STATIC_SEGMENTS:
                normalized.append(segment)
            elif previous in _ID_PARENTS:
                normalized.append("{id}")
            elif self._is_id_segment(segment):
                normalized.append("{id}")
            else:
                normalized.append(segment)

        return "/" + "/".join(normalized) if normalized else "/"

    def _is_id_segment(self, segment: str) -> bool:
        """Check if a path segment looks like an ID."""
        if segment.isdigit() and len(segment) >= 5:
            return True
        if len(segment) >= 20 and segment.replace("-", "").replace("_", "").isalnum():
            return True
        return bool(_SLUG_RE.match(segment)) and len(segment) >= 12
