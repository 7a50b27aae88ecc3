"""Prometheus HTTP instrumentation.

Requests are labelled by the route they matched (``/v1/courses/{course_id}``)
rather than the concrete URL, which keeps one series per endpoint however
many course, quiz and certificate ids are requested.  Paths that match no
route share the ``unmatched`` label.  Scrapes of ``/metrics`` are skipped.
"""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Match

from portal.core.metrics import ACTIVE_REQUESTS, REQUEST_COUNT, REQUEST_DURATION

UNMATCHED = "unmatched"
_SKIPPED_PATHS = frozenset({"/metrics"})


def route_template(request: Request) -> str:
    for route in request.app.routes:
        match, _ = route.matches(request.scope)
        if match is Match.FULL:
            return getattr(route, "path", UNMATCHED)
    return UNMATCHED


def _observe(method: str, endpoint: str, status: int, elapsed: float) -> None:
    REQUEST_COUNT.labels(method=method, endpoint=endpoint, status_code=str(status)).inc()
    REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(elapsed)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in _SKIPPED_PATHS:
            return await call_next(request)

        endpoint = route_template(request)
        started = time.perf_counter()
        status = 500
        with ACTIVE_REQUESTS.track_inprogress():
            try:
                response = await call_next(request)
                status = response.status_code
            finally:
                _observe(
                    request.method, endpoint, status, time.perf_counter() - started
                )
        return response
