"""Per-request correlation for logs.

``request_id_var`` holds the id of the request in flight, taken from the
client's ``X-Request-ID`` or freshly generated, and is echoed back on the
response.  ``user_id_var`` is filled by ``require_user`` once the bearer
token checks out.  ``RequestContextFilter`` copies both onto each record so
the JSON formatter can emit them as top-level keys.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
_UNSET = "-"

logger = logging.getLogger("portal.access")

request_id_var: ContextVar[str] = ContextVar("request_id", default=_UNSET)
user_id_var: ContextVar[str] = ContextVar("user_id", default=_UNSET)


class RequestContextFilter(logging.Filter):
    """Stamp request and user ids on every record.

    Installed on the stdout handler by ``setup_logging`` so records from
    every logger pass through it.  An explicit ``extra={"user_id": ...}``
    wins over the context value.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()  # type: ignore[attr-defined]
        if getattr(record, "user_id", None) is None:
            record.user_id = user_id_var.get()  # type: ignore[attr-defined]
        return True


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request_id_var.set(request_id)
        user_id_var.set(_UNSET)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 1)

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "%s %s %d %.1fms",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            },
        )
        return response
