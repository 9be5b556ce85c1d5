"""
Study Portal Backend — Request Logging Middleware
===================================================

What:  Access log line for every HTTP request: method, path, status, duration,
       plus an upload summary for multipart/form-data requests.
How:   Measures from middleware entry to response return and picks the level
       from the status class (5xx ERROR, 4xx WARNING, otherwise INFO).
When:  After RequestIDMiddleware, so the request ID is available.

Upload summary (multipart requests only):
    upload=multipart bytes=<Content-Length or '-'> boundary=<yes|no>

    A 400 with boundary=no is a client that forgot the boundary parameter;
    a 400 with boundary=yes points at the body itself.

What we log vs what we DON'T log:
    ✅ Log: method, path, status, duration, client IP, request ID, upload summary
    ❌ Don't log: request bodies, form field values, uploaded file contents
"""

import logging
import time
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from studyportal.middleware.request_id import request_id_var

logger = logging.getLogger("studyportal.access")


def describe_upload(headers) -> Optional[dict]:
    """Summarise a multipart request from its headers, or None for other requests."""
    content_type = headers.get("content-type", "")
    if "multipart/form-data" not in content_type.lower():
        return None
    return {
        "declared_bytes": headers.get("content-length", "-"),
        "has_boundary": "boundary=" in content_type.lower(),
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs one line per request.

    /health is skipped: monitors poll it every few seconds.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path == "/health":
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        rid = request_id_var.get("")
        upload = describe_upload(request.headers)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        message = "%s %s %d %.1fms [%s] from %s"
        args = [method, path, status, duration_ms, rid, client_ip]
        extra = {
            "request_id": rid,
            "method": method,
            "path": path,
            "status": status,
            "duration_ms": round(duration_ms, 2),
            "client_ip": client_ip,
        }
        if upload is not None:
            message += " upload=multipart bytes=%s boundary=%s"
            args += [upload["declared_bytes"], "yes" if upload["has_boundary"] else "no"]
            extra["upload"] = upload

        logger.log(log_level, message, *args, extra=extra)

        return response
