"""
FastAPI middleware for observability.

Correlation ID propagation and one access-log line per request.

Dependencies: fastapi, expense_vault.observability
System role: Request/response observability injection
"""

import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from expense_vault.observability.correlation import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and latency of every request."""

    async def dispatch(self, request: Request, call_next):
        """
        Time the request and log its outcome.

        Bodies and headers stay out of the log: they carry expense data and
        bearer tokens.
        """
        started = time.perf_counter()
        method, path = request.method, request.url.path

        try:
            response: Response = await call_next(request)
        except Exception as e:
            logger.exception(
                f"{method} {path} - unhandled {type(e).__name__}",
                extra={"method": method, "path": path, "duration_ms": _elapsed_ms(started)},
            )
            raise

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            f"{method} {path} - {response.status_code}",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": _elapsed_ms(started),
                "client_host": request.client.host if request.client else None,
            },
        )
        return response


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Bind a correlation ID to the request context and echo it back."""

    async def dispatch(self, request: Request, call_next):
        """
        Reuse the caller's X-Correlation-ID or mint one.

        The ID is visible to every log record emitted while handling the
        request and is returned in the response header.
        """
        correlation_id = set_correlation_id(request.headers.get(CORRELATION_HEADER))
        try:
            response: Response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
