"""FastAPI exception handlers for converting errors to HTTP responses.

Every error leaves the API with the same JSON shape (ErrorResponse):
``{"status": "error", "error_code", "error", "message", "details"}``.

The ErrorCode-to-HTTP status mapping:
- 400 Bad Request: Request validation failures
- 404 Not Found: Unknown routes
- 405 Method Not Allowed: Anything but POST on the submission route
- 429 Too Many Requests: Per-client rate limit
- 500 Internal Server Error: Configuration, email delivery, unexpected faults

Usage:
    from precheckin_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_405_METHOD_NOT_ALLOWED,
    HTTP_429_TOO_MANY_REQUESTS,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from precheckin.models.errors import CheckinError, ErrorCode, ErrorResponse
from precheckin.utils.logging import get_logger
from precheckin_api.models.common import format_validation_errors

logger = get_logger(__name__)

# Map ErrorCode to HTTP status codes
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.METHOD_NOT_ALLOWED: HTTP_405_METHOD_NOT_ALLOWED,
    ErrorCode.VALIDATION_FAILED: HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.RATE_LIMITED: HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.MISSING_API_KEY: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.EMAIL_RATE_LIMITED: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.EMAIL_AUTH_FAILED: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.EMAIL_DELIVERY_FAILED: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INTERNAL: HTTP_500_INTERNAL_SERVER_ERROR,
}

HTTP_STATUS_TO_ERROR_CODE: dict[int, ErrorCode] = {
    HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    HTTP_405_METHOD_NOT_ALLOWED: ErrorCode.METHOD_NOT_ALLOWED,
    HTTP_429_TOO_MANY_REQUESTS: ErrorCode.RATE_LIMITED,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode, defaulting to 400."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


def error_json_response(
    code: ErrorCode,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the JSON error response for an error code."""
    body = ErrorResponse.from_code(code, details)
    return JSONResponse(
        status_code=get_http_status_for_error(code),
        content=body.model_dump(mode="json"),
        headers=headers,
    )


async def checkin_error_handler(request: Request, exc: CheckinError) -> JSONResponse:
    """Convert a CheckinError to a JSON response.

    Rate-limit headers set earlier in the request are carried over.
    """
    headers = getattr(request.state, "rate_limit_headers", None)
    return error_json_response(exc.code, exc.details, headers=headers)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report framework-level validation failures as 400 instead of 422."""
    details = format_validation_errors(list(exc.errors())).model_dump(mode="json")["details"]
    return error_json_response(ErrorCode.VALIDATION_FAILED, details)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Wrap Starlette HTTP errors (404, 405, ...) in the standard shape."""
    code = HTTP_STATUS_TO_ERROR_CODE.get(exc.status_code)
    if code is None:
        return JSONResponse(
            status_code=exc.status_code,
            content={"status": "error", "error": str(exc.detail), "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )
    response = error_json_response(code)
    response.status_code = exc.status_code
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with a generic 500 response.

    The traceback is logged; nothing internal is exposed to the client.
    """
    logger.exception("Unhandled exception: %s", exc)
    return error_json_response(ErrorCode.INTERNAL)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(CheckinError, checkin_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
