"""
Exception Handlers.

Turn exceptions into the ErrorResponse envelope:

    ApplicationError        -> status from EXCEPTION_STATUS_MAP, error.code from the exception
    RequestValidationError  -> 422 VAL_REQUEST_INVALID with one entry per invalid field
    anything else           -> 500 SYS_INTERNAL_ERROR

Usage:
    from botbuilder.backend.core.exception_handlers import register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from botbuilder.backend.core.config import get_app_config
from botbuilder.backend.core.exceptions import (
    ApplicationError,
    ConflictError,
    DatabaseError,
    InvalidMenuError,
    NotFoundError,
    ValidationError,
)
from botbuilder.backend.core.logging import get_logger
from botbuilder.backend.schemas.base import ErrorDetail, ErrorResponse, ResponseMetadata

logger = get_logger(__name__)

EXCEPTION_STATUS_MAP: dict[type[ApplicationError], int] = {
    NotFoundError: 404,
    ValidationError: 400,
    ConflictError: 409,
    DatabaseError: 503,
}


def status_for(exc: ApplicationError) -> int:
    """HTTP status of an application error; subclasses inherit their parent's status."""
    for cls in type(exc).__mro__:
        if cls in EXCEPTION_STATUS_MAP:
            return EXCEPTION_STATUS_MAP[cls]
    return 500


def _get_request_id(request: Request) -> str | None:
    """Extract request ID from request state or headers."""
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return request.headers.get("x-request-id")


def _error_response(status_code: int, error: ErrorDetail, request_id: str | None) -> JSONResponse:
    body = ErrorResponse(error=error, metadata=ResponseMetadata(request_id=request_id))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def _request_context(request: Request, request_id: str | None) -> dict[str, Any]:
    context: dict[str, Any] = {"path": request.url.path, "method": request.method}
    if request_id:
        context["request_id"] = request_id
    return context


async def application_error_handler(
    request: Request,
    exc: ApplicationError,
) -> JSONResponse:
    """
    Handle all ApplicationError subclasses.

    4xx are logged as warnings, 5xx as errors. Validation errors carry
    their details (e.g. the list of menu problems) to the client.
    """
    status_code = status_for(exc)
    request_id = _get_request_id(request)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Server error" if status_code >= 500 else "Client error",
        extra={
            "code": exc.code,
            "message": exc.message,
            "status": status_code,
            **_request_context(request, request_id),
        },
    )

    error = ErrorDetail(code=exc.code, message=exc.message)
    if isinstance(exc, ValidationError) and exc.details:
        error.details = exc.details

    return _error_response(status_code, error, request_id)


async def validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle request body, path and query validation failures."""
    request_id = _get_request_id(request)
    errors = exc.errors()

    logger.warning(
        "Request validation failed",
        extra={"error_count": len(errors), **_request_context(request, request_id)},
    )

    error = ErrorDetail(
        code="VAL_REQUEST_INVALID",
        message="Request validation failed",
        details={
            "validation_errors": [
                {
                    "field": ".".join(str(loc) for loc in err.get("loc", [])),
                    "message": err.get("msg", "Validation error"),
                    "type": err.get("type", "unknown"),
                }
                for err in errors
            ]
        },
    )
    return _error_response(422, error, request_id)


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Handle unexpected exceptions.

    The exception type and message reach the client only when
    features.api_detailed_errors is enabled.
    """
    request_id = _get_request_id(request)

    logger.exception(
        "Unhandled exception",
        extra={"exception_type": type(exc).__name__, **_request_context(request, request_id)},
    )

    error = ErrorDetail(code="SYS_INTERNAL_ERROR", message="An unexpected error occurred")
    if get_app_config().features.api_detailed_errors:
        error.details = {"exception": type(exc).__name__, "message": str(exc)}

    return _error_response(500, error, request_id)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(ApplicationError, application_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    logger.debug("Exception handlers registered")
