"""
Request Context Middleware.

Every request gets an id (taken from X-Request-ID or generated) which is
bound into the structlog context together with its source, method and
path, so all log records written while serving it carry them.
"""

import uuid
from datetime import datetime

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from botbuilder.backend.core.logging import get_logger
from botbuilder.backend.core.utils import utc_now

logger = get_logger(__name__)

WEBHOOK_SEGMENT = "/webhook/"


def _log_path(request: Request) -> str:
    """Request path with the bot token of webhook paths masked."""
    path = request.url.path
    if WEBHOOK_SEGMENT not in path:
        return path
    prefix, _, _ = path.rpartition("/")
    return f"{prefix}/***"


def _source(request: Request) -> str:
    return "telegram" if WEBHOOK_SEGMENT in request.url.path else "web"


def _elapsed_ms(start_time: datetime) -> int:
    return int((utc_now() - start_time).total_seconds() * 1000)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Adds X-Request-ID and X-Response-Time to responses and binds the
    request context for logging.

    Telegram webhook deliveries are logged with source "telegram",
    everything else with "web".

    Access in endpoints:
        request.state.request_id
        request.state.start_time
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        start_time = utc_now()
        request.state.request_id = request_id
        request.state.start_time = start_time

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            source=_source(request),
            method=request.method,
            path=_log_path(request),
        )
        logger.debug(
            "Request started",
            extra={"client_host": request.client.host if request.client else None},
        )

        try:
            response = await call_next(request)
            duration_ms = _elapsed_ms(start_time)
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms}ms"
            logger.debug(
                "Request completed",
                extra={"status_code": response.status_code, "duration_ms": duration_ms},
            )
            return response
        except Exception as exc:
            # The registered exception handlers render the response
            logger.error(
                "Request failed with exception",
                extra={"duration_ms": _elapsed_ms(start_time), "error_type": type(exc).__name__},
            )
            raise
        finally:
            structlog.contextvars.clear_contextvars()
