"""
Observability middleware and logging setup.

Every request gets a correlation id (taken from X-Correlation-ID or
generated). It is echoed back in the response and stamped on every log
record written while the request is handled, so dispatch and audit log
lines can be tied to the request that caused them.
"""

import time
import uuid
import logging
from contextvars import ContextVar
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from haulhub.app.core.config import settings

logger = logging.getLogger("haulhub.requests")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] [%(correlation_id)s] %(message)s"

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")


class CorrelationIdFilter(logging.Filter):
    """Adds the current request's correlation id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        return True


def setup_logging() -> None:
    """Configure the root logger once, at application start."""
    root = logging.getLogger()
    root.setLevel(settings.log_level.upper())

    for handler in root.handlers:
        if any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        # Generate or extract Correlation ID
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        token = correlation_id_var.set(correlation_id)
        try:
            return await self._timed(request, call_next, correlation_id)
        finally:
            correlation_id_var.reset(token)

    async def _timed(self, request: Request, call_next, correlation_id: str) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = (time.perf_counter() - start_time) * 1000  # ms

        response.headers["X-Correlation-ID"] = correlation_id
        response.headers["X-Process-Time"] = f"{process_time:.2f}"

        # Log level based on status
        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        logger.log(
            level,
            "%s %s -> %s (%.2f ms, ip=%s)",
            request.method,
            request.url.path,
            response.status_code,
            process_time,
            request.client.host if request.client else "unknown",
        )

        return response
