"""
Exception Handlers.

Turn application and request errors into the ErrorResponse envelope.

Store outages (EngineUnavailableError) answer 503 with Retry-After so
clients back off instead of hammering a database that is already down.
Authentication failures answer 401 with a Bearer challenge. Anything
unexpected is logged in full and answered with a generic 500.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from notevault.backend.core.exceptions import (
    ApplicationError,
    AuthenticationError,
    ConflictError,
    DatabaseError,
    EngineUnavailableError,
    NotFoundError,
    ValidationError,
)
from notevault.backend.core.logging import get_logger
from notevault.backend.schemas.base import ErrorDetail, ErrorResponse, ResponseMetadata

logger = get_logger(__name__)

EXCEPTION_STATUS_MAP: dict[type[ApplicationError], int] = {
    NotFoundError: 404,
    ValidationError: 400,
    AuthenticationError: 401,
    ConflictError: 409,
    DatabaseError: 503,
    EngineUnavailableError: 503,
}

EXCEPTION_HEADERS: dict[type[ApplicationError], dict[str, str]] = {
    AuthenticationError: {"WWW-Authenticate": "Bearer"},
    EngineUnavailableError: {"Retry-After": "1"},
}


def _lookup(table: dict[type[ApplicationError], Any], exc: ApplicationError) -> Any:
    # Nearest registered ancestor wins
    for cls in type(exc).__mro__:
        if cls in table:
            return table[cls]
    return None


def _get_request_id(request: Request) -> str | None:
    """Request ID set by RequestContextMiddleware, else the raw header."""
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return request.headers.get("x-request-id")


def _request_fields(request: Request, request_id: str | None) -> dict[str, Any]:
    return {
        "path": request.url.path,
        "method": request.method,
        "request_id": request_id,
    }


def _error_response(
    status_code: int,
    error_detail: ErrorDetail,
    request_id: str | None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=error_detail,
        metadata=ResponseMetadata(request_id=request_id),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json"),
        headers=headers,
    )


async def application_error_handler(
    request: Request,
    exc: ApplicationError,
) -> JSONResponse:
    """Answer an ApplicationError with its mapped status, code and headers."""
    status_code = _lookup(EXCEPTION_STATUS_MAP, exc) or 500
    request_id = _get_request_id(request)

    fields = _request_fields(request, request_id)
    fields.update(code=exc.code, message=exc.message, status=status_code)
    if status_code >= 500:
        logger.error("Note store request failed", extra=fields)
    else:
        logger.warning("Note request rejected", extra=fields)

    error_detail = ErrorDetail(code=exc.code, message=exc.message)
    if isinstance(exc, ValidationError) and exc.details:
        error_detail.details = exc.details

    return _error_response(
        status_code,
        error_detail,
        request_id,
        headers=_lookup(EXCEPTION_HEADERS, exc),
    )


def _validation_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    return [
        {
            "field": ".".join(str(part) for part in err.get("loc", [])),
            "message": err.get("msg", "Validation error"),
            "type": err.get("type", "unknown"),
        }
        for err in exc.errors()
    ]


async def validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Answer malformed request bodies and parameters with 422.

    Unknown update fields land here too, since NoteUpdate forbids extras.
    """
    request_id = _get_request_id(request)
    errors = _validation_errors(exc)

    fields = _request_fields(request, request_id)
    fields["error_count"] = len(errors)
    logger.warning("Request validation failed", extra=fields)

    return _error_response(
        422,
        ErrorDetail(
            code="VAL_REQUEST_INVALID",
            message="Request validation failed",
            details={"validation_errors": errors},
        ),
        request_id,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    request_id = _get_request_id(request)

    fields = _request_fields(request, request_id)
    fields["exception_type"] = type(exc).__name__
    logger.exception("Unhandled exception", extra=fields)

    return _error_response(
        500,
        ErrorDetail(code="SYS_INTERNAL_ERROR", message="An unexpected error occurred"),
        request_id,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers on the app."""
    app.add_exception_handler(ApplicationError, application_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    logger.debug("Exception handlers registered")
