"""Request context middleware — request id + access log via structlog.

Learn: Every HTTP request gets an id, either from the incoming
X-Request-ID header (so AnyQuest-side traces line up) or a fresh UUID.
The id and the path are bound to structlog's contextvars, so the
webhook.received / relay.* lines logged while handling the request carry
them automatically. One http.request line is logged per request with
status and duration.

BaseHTTPMiddleware only wraps HTTP requests; WebSocket connections pass
straight through and log their own ws.* events.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind request_id/path for logging and echo X-Request-ID back."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "http.request",
            status_code=response.status_code,
            duration_ms=elapsed_ms,
        )
        return response
