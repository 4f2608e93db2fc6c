"""
CodeSnippet Manager Backend: Request ID Middleware
===================================================

What:  Assigns a correlation ID to each request and returns it in the response.
Why:   Ties the access log line, any warning from the repository, and the
       error body the browser receives to one request.
How:   Reuses an inbound X-Request-ID header or generates an 8-character
       UUID prefix, stores it in a ContextVar and on request.state, and
       echoes it as the X-Request-ID response header.
Who:   Read by RequestLoggingMiddleware and by the exception handlers in main.py.
When:  Outermost middleware, so the ID exists before anything else logs.

Where the ID shows up:
    - Access log:   GET /api/snippets 200 4.2ms [a1b2c3d4] from 127.0.0.1
    - Error bodies: {"success": false, ..., "request_id": "a1b2c3d4"}
    - Response:     X-Request-ID: a1b2c3d4 (exposed through CORS)
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ── Context Variable ──────────────────────────────────────────────────────
# What: Coroutine-local storage for the current request ID
# Why ContextVar: concurrent requests share one thread on the event loop;
# each request's task sees its own value
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that assigns a unique ID to each request for tracing.

    Behavior:
        1. Use the client's X-Request-ID header when it is present and non-empty
        2. Otherwise generate one (first 8 characters of a UUID4)
        3. Store it in the ContextVar (loggers, exception handlers)
        4. Store it on request.state (route handlers)
        5. Echo it in the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # An empty header counts as absent
        rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)

        # Why: the frontend shows it next to error messages for bug reports
        response.headers[REQUEST_ID_HEADER] = rid
        return response
