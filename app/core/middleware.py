import logging
import time
import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("careers_mailer.requests")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add X-Request-ID header for request tracing.

    If the client sends X-Request-ID, it is preserved.
    Otherwise, a new UUID is generated.

    The request ID is:
    - Available in request.state.request_id for logging
    - Bound to the structlog context for every log line of the request
    - Returned in response headers for client correlation
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # The catch-all handler answers outside this middleware.
            self._log_request(request, 500, start_time)
            raise
        self._log_request(request, response.status_code, start_time)

        response.headers["X-Request-ID"] = request_id
        return response

    @staticmethod
    def _log_request(request: Request, status_code: int, start_time: float) -> None:
        logger.info(
            "REQUEST | method=%s | path=%s | status=%s | duration=%.4fs",
            request.method,
            request.url.path,
            status_code,
            time.perf_counter() - start_time,
        )
