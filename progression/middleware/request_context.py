"""Request context middleware: assigns a unique ID to every request.

Concurrent requests interleave their log lines; a request ID on every
line tells you which "XP awarded" line belongs to which lesson
completion.  The ID lives in a ContextVar and RequestContextFilter copies
it onto every LogRecord; setup_logging installs the filter on the root
handler so records from every logger pass through it.

The learner ID is tracked the same way: the auth dependency sets
learner_id_var once the bearer token is verified, so engine log lines
emitted while handling the request carry it too.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")
learner_id_var: ContextVar[str | None] = ContextVar("learner_id", default=None)


class RequestContextFilter(logging.Filter):
    """Logging filter that injects request context into every LogRecord.

    A formatter can only read fields that already exist on the record;
    a filter can add them before formatting.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("-")  # type: ignore[attr-defined]
        learner_id = learner_id_var.get(None)
        if learner_id is not None and not hasattr(record, "learner_id"):
            record.learner_id = learner_id  # type: ignore[attr-defined]
        return True


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware that assigns a request ID, times requests, and logs completion.

    For every incoming request:
    1. Reads X-Request-ID header (if client provided one) or generates a UUID
    2. Stores it in a ContextVar (accessible anywhere in the async chain)
    3. Times the request
    4. Logs a summary line on completion (method, path, status, duration)
    5. Sets X-Request-ID on the response (for client correlation)
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request_id_var.set(req_id)
        learner_id_var.set(None)

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        logger.info(
            "%s %s → %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Request-ID"] = req_id

        return response
