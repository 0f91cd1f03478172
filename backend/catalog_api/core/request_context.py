"""Per-request logging context and request timers.

Each request gets its own structlog logger bound with a short request id,
the method and the path. On completion the request is timed as
``http.request``, and as ``api.<resource>.<action>`` when the matched
route carries such a name. The bound logger lives on ``request.state.log``
and is handed explicitly to services; nothing depends on thread-local or
context-variable state.
"""

import time
import uuid

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from structlog.typing import FilteringBoundLogger

from catalog_api.core.metrics import record_timing

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"

# Route names with this prefix get their own endpoint timer
ENDPOINT_METRIC_PREFIX = "api."


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request-scoped logger and log request start/completion."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Attach the logger, time the request, and echo the request id."""
        request_id = uuid.uuid4().hex[:8]
        log = logger.bind(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        request.state.log = log
        log.info("request_started")

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)

        # The access gate may have re-bound the logger with the principal
        final_log = getattr(request.state, "log", log)
        final_log.info(
            "request_completed",
            status=response.status_code,
            duration_ms=duration_ms,
        )
        _record_request_metrics(request, response.status_code, duration_ms)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _record_request_metrics(
    request: Request, status_code: int, duration_ms: float
) -> None:
    # The router stores the matched route in the shared scope
    route = request.scope.get("route")
    uri = getattr(route, "path", request.url.path)
    record_timing(
        "http.request",
        duration_ms,
        method=request.method,
        uri=uri,
        status=status_code,
    )

    name = getattr(route, "name", "")
    if name.startswith(ENDPOINT_METRIC_PREFIX):
        record_timing(name, duration_ms, status=status_code)


def get_request_log(request: Request) -> FilteringBoundLogger:
    """Return the logger bound to this request.

    Falls back to an unbound logger when the middleware did not run
    (e.g., endpoint unit tests that build their own app).
    """
    return getattr(request.state, "log", logger)
