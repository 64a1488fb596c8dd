"""User account API endpoints."""

import asyncio

from fastapi import APIRouter, Depends, Query, status
import structlog

from greenlight.api.dependencies import require_activated, require_permission
from greenlight.config import get_settings
from greenlight.errors import RecordNotFoundError, ValidationFailedError
from greenlight.models.auth import (
    ActivateUserRequest,
    MessageResponse,
    PermissionsResponse,
    RegisterUserRequest,
    ResetPasswordRequest,
    UserListResponse,
    UserResponse,
)
from greenlight.models.user import TokenScope, User
from greenlight.services.account_service import AccountService
from greenlight.services.background import run_in_background
from greenlight.services.mailer import Mailer
from greenlight.services.password_service import PasswordService
from greenlight.services.permission_service import PermissionService
from greenlight.services.token_service import TokenService
from greenlight.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/v1/users", tags=["Users"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def register_user(request: RegisterUserRequest) -> UserResponse:
    """Register a new, not yet activated, account.

    The user row and its default permissions are written in one
    transaction. An activation token is then issued and emailed in the
    background; a failed email does not fail the registration.

    Raises:
        DuplicateEmailError: If the email address is already registered
    """
    settings = get_settings()

    password_hash = await asyncio.to_thread(PasswordService().hash_password, request.password)

    user = await AccountService().register_user(
        name=request.name,
        email=request.email,
        password_hash=password_hash,
        permission_codes=settings.default_permissions_list,
    )

    issued = await TokenService().generate_token(
        user.id, settings.activation_token_ttl, TokenScope.ACTIVATION
    )

    run_in_background(
        Mailer().send(
            user.email,
            "user_welcome",
            {
                "user_id": user.id,
                "activation_token": issued.plaintext,
                "ttl": f"{settings.activation_token_ttl_days} days",
            },
        ),
        name="welcome_email",
    )

    return UserResponse(user=user)


@router.put("/activated")
async def activate_user(request: ActivateUserRequest) -> UserResponse:
    """Activate the account owning an activation token.

    Every activation token of the user is revoked in the same transaction.

    Raises:
        ValidationFailedError: If the token is invalid or expired
        EditConflictError: If the user changed concurrently
    """
    try:
        user = await TokenService().get_user_for_token(request.token, TokenScope.ACTIVATION)
    except RecordNotFoundError:
        logger.info("activation_token_rejected")
        raise ValidationFailedError({"token": "invalid or expired activation token"})

    user = await AccountService().activate_user(user.id, user.version)
    return UserResponse(user=user)


@router.put("/password")
async def reset_password(request: ResetPasswordRequest) -> MessageResponse:
    """Set a new password using a password-reset token.

    Every password-reset token of the user is revoked in the same
    transaction.

    Raises:
        ValidationFailedError: If the token is invalid or expired
        EditConflictError: If the user changed concurrently
    """
    try:
        user = await TokenService().get_user_for_token(
            request.token, TokenScope.PASSWORD_RESET
        )
    except RecordNotFoundError:
        logger.info("password_reset_token_rejected")
        raise ValidationFailedError({"token": "invalid or expired password reset token"})

    password_hash = await asyncio.to_thread(PasswordService().hash_password, request.password)
    await AccountService().reset_password(user.id, password_hash, user.version)

    return MessageResponse(message="your password was successfully reset")


@router.get("/me")
async def get_me(current_user: User = Depends(require_activated)) -> UserResponse:
    """Get the authenticated, activated caller."""
    return UserResponse(user=current_user)


@router.get("/me/permissions")
async def get_my_permissions(
    current_user: User = Depends(require_activated),
) -> PermissionsResponse:
    """List the permission codes granted to the caller."""
    permissions = await PermissionService().get_all_for_user(current_user.id)
    return PermissionsResponse(permissions=sorted(permissions.codes))


@router.get("", dependencies=[Depends(require_permission("users:read"))])
async def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=10),
) -> UserListResponse:
    """List users one page at a time. Requires ``users:read``."""
    user_service = UserService()
    users = await user_service.list_users(limit=page_size, offset=(page - 1) * page_size)
    total = await user_service.count_users()
    return UserListResponse(users=users, total_users=total)
