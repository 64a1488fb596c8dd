"""Login: exchanging email and password for an authentication token."""

import asyncio

import structlog

from greenlight.config import get_settings
from greenlight.errors import InvalidCredentialsError, RecordNotFoundError
from greenlight.models.user import IssuedToken, TokenScope
from greenlight.services.password_service import PasswordService
from greenlight.services.token_service import TokenService
from greenlight.services.user_service import UserService

logger = structlog.get_logger(__name__)


class AuthService:
    """Service for credential verification and authentication token issuance."""

    def __init__(self):
        self.settings = get_settings()
        self.users = UserService()
        self.passwords = PasswordService()
        self.tokens = TokenService()

    async def authenticate(self, email: str, password: str) -> IssuedToken:
        """Verify credentials and issue an authentication token.

        Args:
            email: Account email address
            password: Plain-text password

        Returns:
            IssuedToken with the plaintext bearer token and its expiry

        Raises:
            InvalidCredentialsError: If the email is unknown or the password
                is wrong (the two are reported identically)
        """
        try:
            record = await self.users.get_by_email(email)
        except RecordNotFoundError:
            logger.info("login_failed", reason="unknown_email")
            raise InvalidCredentialsError("invalid authentication credentials")

        matched = await asyncio.to_thread(
            self.passwords.verify_password, password, record.password_hash
        )
        if not matched:
            logger.info("login_failed", reason="password_mismatch", user_id=record.id)
            raise InvalidCredentialsError("invalid authentication credentials")

        issued = await self.tokens.generate_token(
            record.id,
            self.settings.authentication_token_ttl,
            TokenScope.AUTHENTICATION,
        )

        logger.info("user_logged_in", user_id=record.id)
        return issued
