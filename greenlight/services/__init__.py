"""Services package exports."""

from greenlight.services.account_service import AccountService
from greenlight.services.auth_service import AuthService
from greenlight.services.logging_service import configure_logging, get_logger
from greenlight.services.mailer import Mailer
from greenlight.services.password_service import PasswordService
from greenlight.services.permission_service import PermissionService
from greenlight.services.token_service import TokenService
from greenlight.services.user_service import UserService

__all__ = [
    "AccountService",
    "AuthService",
    "Mailer",
    "PasswordService",
    "PermissionService",
    "TokenService",
    "UserService",
    "configure_logging",
    "get_logger",
]
