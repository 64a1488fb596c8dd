"""Middleware for request tracking and identity resolution."""

from uuid import uuid4

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from greenlight.api.errors import invalid_token_response, server_error_response
from greenlight.errors import RecordNotFoundError
from greenlight.models.user import ANONYMOUS, AuthenticatedIdentity, TokenScope
from greenlight.services.token_service import TokenService, is_valid_token_format

logger = structlog.get_logger(__name__)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware to add correlation ID to every request.

    - Generates UUID4 per request (or uses X-Correlation-Id header if present)
    - Stores in request.state.correlation_id
    - Binds to structlog context for all subsequent logging
    - Adds X-Correlation-Id response header
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = request.headers.get("X-Correlation-Id", str(uuid4()))
        request.state.correlation_id = correlation_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)

        response = await call_next(request)
        response.headers["X-Correlation-Id"] = correlation_id

        return response


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """Resolve the bearer token of every request to an Identity.

    - No Authorization header: the request continues as ANONYMOUS
    - Malformed header, badly formatted or unknown/expired token: 401
    - Store failure during lookup, or any unexpected downstream failure: 500
    - Otherwise request.state.identity holds the token owner

    Responses always carry ``Vary: Authorization``.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await self._resolve(request, call_next)
        _add_vary(response, "Authorization")
        return response

    async def _resolve(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        header = request.headers.get("Authorization")

        if header is None:
            request.state.identity = ANONYMOUS
            return await _call_next_or_server_error(request, call_next)

        parts = header.split(" ")
        if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
            logger.info("authorization_header_malformed")
            return invalid_token_response()

        token = parts[1]
        if not is_valid_token_format(token):
            logger.info("authentication_token_malformed")
            return invalid_token_response()

        try:
            user = await TokenService().get_user_for_token(token, TokenScope.AUTHENTICATION)
        except RecordNotFoundError:
            logger.info("authentication_token_rejected")
            return invalid_token_response()
        except Exception as e:
            return server_error_response(request, e)

        request.state.identity = AuthenticatedIdentity(user=user)
        structlog.contextvars.bind_contextvars(user_id=user.id)
        return await _call_next_or_server_error(request, call_next)


async def _call_next_or_server_error(
    request: Request, call_next: RequestResponseEndpoint
) -> Response:
    """Turn an unexpected downstream exception into the generic 500 response."""
    try:
        return await call_next(request)
    except Exception as e:
        return server_error_response(request, e)


def _add_vary(response: Response, header: str) -> None:
    existing = response.headers.get("Vary")
    if existing is None:
        response.headers["Vary"] = header
    elif header.lower() not in [v.strip().lower() for v in existing.split(",")]:
        response.headers["Vary"] = f"{existing}, {header}"
