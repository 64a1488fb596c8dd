"""Multi-step account changes that must commit or roll back as one unit."""

from typing import Iterable

import structlog

from greenlight.database import transaction
from greenlight.models.user import TokenScope, User
from greenlight.services.permission_service import PermissionService
from greenlight.services.token_service import TokenService
from greenlight.services.user_service import UserService

logger = structlog.get_logger(__name__)


class AccountService:
    """Orchestrates user, permission and token writes inside one transaction.

    Any step raising rolls back every earlier step of the same operation,
    so a consumed activation or reset token can never outlive the user
    update it authorized.
    """

    def __init__(self):
        self.users = UserService()
        self.permissions = PermissionService()
        self.tokens = TokenService()

    async def register_user(
        self,
        name: str,
        email: str,
        password_hash: bytes,
        permission_codes: Iterable[str],
    ) -> User:
        """Create an inactive user and grant its default permissions.

        Args:
            name: Display name
            email: Email address
            password_hash: Bcrypt hash of the chosen password
            permission_codes: Codes granted to the new user

        Returns:
            The created User

        Raises:
            DuplicateEmailError: If the email address is already registered
        """
        codes = list(permission_codes)

        async with transaction() as conn:
            user = await self.users.insert(
                name=name,
                email=email,
                password_hash=password_hash,
                activated=False,
                conn=conn,
            )
            await self.permissions.add_for_user(user.id, codes, conn=conn)

        logger.info("user_registered", user_id=user.id, permissions=codes)
        return user

    async def activate_user(self, user_id: int, expected_version: int) -> User:
        """Activate a user and revoke all of its activation tokens.

        Raises:
            EditConflictError: If the user's version is no longer
                ``expected_version``
        """
        async with transaction() as conn:
            user = await self.users.activate(user_id, expected_version, conn=conn)
            await self.tokens.delete_all_for_user(
                user_id, TokenScope.ACTIVATION, conn=conn
            )

        logger.info("user_activated", user_id=user_id, version=user.version)
        return user

    async def reset_password(
        self,
        user_id: int,
        password_hash: bytes,
        expected_version: int,
    ) -> User:
        """Replace a user's password and revoke all of its reset tokens.

        Raises:
            EditConflictError: If the user's version is no longer
                ``expected_version``
        """
        async with transaction() as conn:
            user = await self.users.update_password(
                user_id, password_hash, expected_version, conn=conn
            )
            await self.tokens.delete_all_for_user(
                user_id, TokenScope.PASSWORD_RESET, conn=conn
            )

        logger.info("user_password_reset", user_id=user_id, version=user.version)
        return user
