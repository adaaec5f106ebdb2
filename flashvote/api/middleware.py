"""
Per-request correlation, access logging and latency metrics.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from flashvote.api.dependencies import get_client_ip
from flashvote.core.logging import get_logger
from flashvote.core.metrics import record_request

logger = get_logger(__name__)

# Probes and scrapes would drown out real traffic
QUIET_PATHS = frozenset({"/health", "/metrics"})


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", "unmatched")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Binds request_id and client_ip into structlog contextvars for the
    lifetime of the request, echoes X-Request-ID back to the caller, and
    records latency per route template (not raw path, so event ids do not
    explode label cardinality).
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            client_ip=get_client_ip(request),
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            elapsed = time.perf_counter() - started
            record_request(request.method, _route_template(request), 500, elapsed)
            logger.exception("request_failed", duration_ms=round(elapsed * 1000, 2))
            raise

        elapsed = time.perf_counter() - started
        route = _route_template(request)
        record_request(request.method, route, response.status_code, elapsed)

        if request.url.path not in QUIET_PATHS:
            log = logger.warning if response.status_code >= 500 else logger.info
            log(
                "request_completed",
                route=route,
                status_code=response.status_code,
                duration_ms=round(elapsed * 1000, 2),
            )

        response.headers["X-Request-ID"] = request_id
        return response
