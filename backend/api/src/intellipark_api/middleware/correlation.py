"""Correlation ID middleware for request tracing.

Reads X-Correlation-ID from the request (or generates one), exposes it to
loggers through a ContextVar, and echoes it on the response. Gateway
webhook deliveries arrive without the header and get a fresh ID, so every
log line of one delivery can still be grepped together.

Each request also gets one access log line with method, path, status and
duration.
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from intellipark.utils.logging import clear_correlation_id, get_logger, set_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"

logger = get_logger("intellipark_api.access")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tags each request with a correlation ID and logs its outcome."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = set_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            logger.info(
                "%s %s -> %d (%.1f ms)",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
            )
            return response
        finally:
            clear_correlation_id()
