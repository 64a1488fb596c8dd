"""API package exports."""

from greenlight.api.middleware import AuthenticationMiddleware, CorrelationIdMiddleware
from greenlight.api.tokens import router as tokens_router
from greenlight.api.users import router as users_router

__all__ = [
    "AuthenticationMiddleware",
    "CorrelationIdMiddleware",
    "tokens_router",
    "users_router",
]
