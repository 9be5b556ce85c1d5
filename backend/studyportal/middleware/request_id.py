"""
Study Portal Backend — Request ID Middleware
==============================================

What:  Assigns a correlation ID to each request and echoes it in the response.
How:   Accepts the client's X-Request-ID only when it is a short token of
       letters, digits, '-' and '_'; anything else is replaced by a fresh
       8-character hex ID. The ID lives in a ContextVar so loggers and
       exception handlers can read it without the request object.
When:  Runs before the access log middleware.

Upload failures surface the ID in the error body, so a failed upload reported
by a user can be matched against the decoder's log lines.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Echoed into headers, log lines and JSON error bodies.
_CLIENT_ID_RE = re.compile(r"[A-Za-z0-9_-]{1,64}")

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def resolve_request_id(client_value: Optional[str]) -> str:
    """Return the client's ID if it is a safe token, else a new one."""
    if client_value and _CLIENT_ID_RE.fullmatch(client_value):
        return client_value
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Stores the request ID in request_id_var and request.state.request_id."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
