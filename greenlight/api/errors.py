"""Mapping of failures to JSON error responses.

Every error body has the shape ``{"error": <message or field map>}``.
"""

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import structlog

from greenlight.errors import (
    DuplicateEmailError,
    EditConflictError,
    GreenlightError,
    InvalidCredentialsError,
    RecordNotFoundError,
    ValidationFailedError,
)

logger = structlog.get_logger(__name__)

NOT_FOUND = "the requested resource could not be found"
SERVER_ERROR = "the server encountered a problem and could not process your request"
EDIT_CONFLICT = "unable to update the record due to an edit conflict, please try again"
INVALID_CREDENTIALS = "invalid authentication credentials"
INVALID_TOKEN = "invalid or missing authentication token"
AUTHENTICATION_REQUIRED = "you must be an authenticated user in order to access this resource"
ACTIVATION_REQUIRED = "your user account must be activated to access this resource"
NOT_PERMITTED = "your user account doesn't have the necessary permissions to access this resource"
BAD_JSON = "body contains badly-formed JSON"


def error_response(status_code: int, message, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def invalid_token_response() -> JSONResponse:
    return error_response(
        status.HTTP_401_UNAUTHORIZED,
        INVALID_TOKEN,
        headers={"WWW-Authenticate": "Bearer"},
    )


def server_error_response(request: Request, exc: BaseException) -> JSONResponse:
    """Log an unexpected failure with request context and hide its detail."""
    logger.error(
        "server_error",
        method=request.method,
        uri=str(request.url.path),
        error=str(exc),
        exc_info=exc,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Re-shape HTTPException into the error envelope."""
    return error_response(exc.status_code, exc.detail, headers=getattr(exc, "headers", None))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request parsing errors.

    Badly-formed JSON gets 400; everything else is aggregated into a
    field -> message map with 422.
    """
    errors = exc.errors()

    if any(error.get("type") == "json_invalid" for error in errors):
        return error_response(status.HTTP_400_BAD_REQUEST, BAD_JSON)

    violations: dict[str, str] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "body"
        message = error.get("msg", "is invalid")
        if error.get("type") == "value_error":
            message = message.removeprefix("Value error, ")
        violations.setdefault(field, message)

    logger.info("request_validation_failed", fields=sorted(violations))
    return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, violations)


async def greenlight_error_handler(request: Request, exc: GreenlightError) -> JSONResponse:
    """Map domain errors that escaped a route to their HTTP responses."""
    if isinstance(exc, ValidationFailedError):
        return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, exc.violations)
    if isinstance(exc, DuplicateEmailError):
        return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, {"email": str(exc)})
    if isinstance(exc, EditConflictError):
        return error_response(status.HTTP_409_CONFLICT, EDIT_CONFLICT)
    if isinstance(exc, InvalidCredentialsError):
        return error_response(status.HTTP_401_UNAUTHORIZED, INVALID_CREDENTIALS)
    if isinstance(exc, RecordNotFoundError):
        return error_response(status.HTTP_404_NOT_FOUND, NOT_FOUND)
    return server_error_response(request, exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return server_error_response(request, exc)
