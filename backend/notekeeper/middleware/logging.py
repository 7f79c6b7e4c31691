"""
Notekeeper Backend: Access Log Middleware
==========================================

What:  One access log line per HTTP request against the notes API.
How:   Times the downstream call, then logs method, path, status, elapsed
       time, the active store backend and, for list responses, the number
       of notes returned (taken from X-Total-Count).
When:  Runs inside RequestIDMiddleware, so the request id is already set.

Note contents never reach the log; only the request line and response
metadata are recorded.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notekeeper.middleware.request_id import request_id_var

access_logger = logging.getLogger("notekeeper.access")

# Liveness probes hit this every few seconds
_QUIET_PATHS = frozenset({"/health"})


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Writes the access log entry for each notes API request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in _QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        store = getattr(request.app.state, "note_store", None)
        store_name = getattr(store, "name", "none")
        total = response.headers.get("X-Total-Count")
        rid = request_id_var.get("")

        message = "%s %s -> %d in %.1fms store=%s [%s]"
        args = [
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            store_name,
            rid,
        ]
        if total is not None:
            message += " notes=%s"
            args.append(total)

        access_logger.log(
            _level_for(response.status_code),
            message,
            *args,
            extra={
                "request_id": rid,
                "store": store_name,
                "status": response.status_code,
                "duration_ms": round(elapsed_ms, 2),
            },
        )
        return response
