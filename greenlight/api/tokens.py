"""Token issuance API endpoints."""

from fastapi import APIRouter, status
import structlog

from greenlight.config import get_settings
from greenlight.errors import RecordNotFoundError, ValidationFailedError
from greenlight.models.auth import (
    AuthenticationTokenResponse,
    CreateAuthenticationTokenRequest,
    EmailRequest,
    MessageResponse,
    TokenPayload,
)
from greenlight.models.user import TokenScope, UserRecord
from greenlight.services.auth_service import AuthService
from greenlight.services.background import run_in_background
from greenlight.services.mailer import Mailer
from greenlight.services.token_service import TokenService
from greenlight.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/v1/tokens", tags=["Tokens"])


async def _get_user_for_email(email: str) -> UserRecord:
    try:
        return await UserService().get_by_email(email)
    except RecordNotFoundError:
        raise ValidationFailedError({"email": "no matching email address found"})


@router.post("/authentication", status_code=status.HTTP_201_CREATED)
async def create_authentication_token(
    request: CreateAuthenticationTokenRequest,
) -> AuthenticationTokenResponse:
    """Exchange email and password for a bearer token.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password (401)
    """
    issued = await AuthService().authenticate(request.email, request.password)

    return AuthenticationTokenResponse(
        authentication_token=TokenPayload(token=issued.plaintext, expiry=issued.expires_at)
    )


@router.post("/activation", status_code=status.HTTP_202_ACCEPTED)
async def create_activation_token(request: EmailRequest) -> MessageResponse:
    """Email a fresh activation token to a user who has not activated yet."""
    settings = get_settings()

    user = await _get_user_for_email(request.email)
    if user.activated:
        raise ValidationFailedError({"email": "user has already been activated"})

    issued = await TokenService().generate_token(
        user.id, settings.activation_token_ttl, TokenScope.ACTIVATION
    )

    run_in_background(
        Mailer().send(
            user.email,
            "token_activation",
            {
                "activation_token": issued.plaintext,
                "ttl": f"{settings.activation_token_ttl_days} days",
            },
        ),
        name="activation_email",
    )
    logger.info("activation_token_reissued", user_id=user.id)

    return MessageResponse(message="an email will be sent to you containing activation instructions")


@router.post("/password-reset", status_code=status.HTTP_202_ACCEPTED)
async def create_password_reset_token(request: EmailRequest) -> MessageResponse:
    """Email a password-reset token to an activated user."""
    settings = get_settings()

    user = await _get_user_for_email(request.email)
    if not user.activated:
        raise ValidationFailedError({"email": "user account must be activated"})

    issued = await TokenService().generate_token(
        user.id, settings.password_reset_token_ttl, TokenScope.PASSWORD_RESET
    )

    run_in_background(
        Mailer().send(
            user.email,
            "token_password_reset",
            {
                "password_reset_token": issued.plaintext,
                "ttl": f"{settings.password_reset_token_ttl_minutes} minutes",
            },
        ),
        name="password_reset_email",
    )
    logger.info("password_reset_token_issued", user_id=user.id)

    return MessageResponse(
        message="an email will be sent to you containing password reset instructions"
    )
