"""Request logging middleware."""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from reachsync.infrastructure.observability.logging import (
    get_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger(__name__)


# Hey future me, the correlation id is set BEFORE call_next, so every log line emitted by
# the sync pipeline (including the fan-out tasks, contextvars are copied into them) carries
# the same id. Clients can pass their own X-Correlation-ID and get it echoed back.
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each HTTP request with status and duration."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        set_correlation_id(request.headers.get("X-Correlation-ID"))
        method = request.method
        path = request.url.path

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                f"Request failed: {method} {path}",
                extra={
                    "method": method,
                    "path": path,
                    "error_type": type(e).__name__,
                },
            )
            raise

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        status_mark = "✓" if response.status_code < 400 else "✗"
        logger.info(
            f"{status_mark} {method} {path} → {response.status_code} ({duration_ms}ms)",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        response.headers["X-Correlation-ID"] = get_correlation_id()
        return response
