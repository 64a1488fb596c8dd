"""Models package exports."""

from greenlight.models.auth import (
    ActivateUserRequest,
    AuthenticationTokenResponse,
    CreateAuthenticationTokenRequest,
    EmailRequest,
    MessageResponse,
    PermissionsResponse,
    RegisterUserRequest,
    ResetPasswordRequest,
    TokenPayload,
    UserListResponse,
    UserResponse,
)
from greenlight.models.user import (
    ANONYMOUS,
    AnonymousIdentity,
    AuthenticatedIdentity,
    Identity,
    IssuedToken,
    Permissions,
    Token,
    TokenScope,
    User,
    UserRecord,
)

__all__ = [
    "ANONYMOUS",
    "ActivateUserRequest",
    "AnonymousIdentity",
    "AuthenticatedIdentity",
    "AuthenticationTokenResponse",
    "CreateAuthenticationTokenRequest",
    "EmailRequest",
    "Identity",
    "IssuedToken",
    "MessageResponse",
    "Permissions",
    "PermissionsResponse",
    "RegisterUserRequest",
    "ResetPasswordRequest",
    "Token",
    "TokenPayload",
    "TokenScope",
    "User",
    "UserListResponse",
    "UserRecord",
    "UserResponse",
]
