"""Request ID middleware — unique ID per HTTP request for tracing.

Learn: Every publish call gets a UUID, either from the incoming
X-Request-ID header or auto-generated. The ID is bound to structlog's
contextvars so the broadcast log entries it triggers carry it, and it is
returned in the response header.

BaseHTTPMiddleware only sees HTTP requests; websocket connections are
tagged with their own connection_id instead.
"""

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Generate and propagate a unique request ID."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
        )
        try:
            response: Response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()
        response.headers["X-Request-ID"] = request_id
        return response
