"""Account and token request/response models with validation.

Field rules raise ValueError so FastAPI reports every invalid field of a
request at once. The first failing rule of a field supplies its message.
"""

import re
from datetime import datetime
from typing import List

from pydantic import BaseModel, Field, field_validator

from greenlight.models.user import User

EMAIL_RX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9]"
    r"(?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

# bcrypt only considers the first 72 bytes of input
PASSWORD_MIN_BYTES = 8
PASSWORD_MAX_BYTES = 72
NAME_MAX_BYTES = 500
TOKEN_PLAINTEXT_LENGTH = 26


def _check_email(v: str) -> str:
    if v == "":
        raise ValueError("must be provided")
    if not EMAIL_RX.match(v):
        raise ValueError("must be a valid email address")
    return v


def _check_password(v: str) -> str:
    size = len(v.encode("utf-8"))
    if v == "":
        raise ValueError("must be provided")
    if size < PASSWORD_MIN_BYTES:
        raise ValueError("must be at least 8 bytes long")
    if size > PASSWORD_MAX_BYTES:
        raise ValueError("must not be more than 72 bytes long")
    return v


def _check_token(v: str) -> str:
    if v == "":
        raise ValueError("must be provided")
    if len(v.encode("utf-8")) != TOKEN_PLAINTEXT_LENGTH:
        raise ValueError("must be 26 bytes long")
    return v


class RegisterUserRequest(BaseModel):
    """New account details.

    Attributes:
        name: Display name (1-500 bytes)
        email: Unique email address
        password: Plain-text password (8-72 bytes)
    """

    name: str = Field(default="", validate_default=True)
    email: str = Field(default="", validate_default=True)
    password: str = Field(default="", validate_default=True)

    @field_validator("name")
    @classmethod
    def name_valid(cls, v: str) -> str:
        if v == "":
            raise ValueError("must be provided")
        if len(v.encode("utf-8")) > NAME_MAX_BYTES:
            raise ValueError("must not be more than 500 bytes long")
        return v

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def password_valid(cls, v: str) -> str:
        return _check_password(v)


class ActivateUserRequest(BaseModel):
    """Activation token taken from the welcome email."""

    token: str = Field(default="", validate_default=True)

    @field_validator("token")
    @classmethod
    def token_valid(cls, v: str) -> str:
        return _check_token(v)


class ResetPasswordRequest(BaseModel):
    """New password plus the password-reset token that authorizes it."""

    password: str = Field(default="", validate_default=True)
    token: str = Field(default="", validate_default=True)

    @field_validator("password")
    @classmethod
    def password_valid(cls, v: str) -> str:
        return _check_password(v)

    @field_validator("token")
    @classmethod
    def token_valid(cls, v: str) -> str:
        return _check_token(v)


class CreateAuthenticationTokenRequest(BaseModel):
    """Login credentials."""

    email: str = Field(default="", validate_default=True)
    password: str = Field(default="", validate_default=True)

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def password_valid(cls, v: str) -> str:
        return _check_password(v)


class EmailRequest(BaseModel):
    """Body for endpoints that issue a token to an email address."""

    email: str = Field(default="", validate_default=True)

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _check_email(v)




class UserResponse(BaseModel):
    """Envelope for a single user."""

    user: User


class UserListResponse(BaseModel):
    """Envelope for a page of users."""

    users: List[User]
    total_users: int


class TokenPayload(BaseModel):
    """A plaintext token and its expiry as handed to the client."""

    token: str
    expiry: datetime


class AuthenticationTokenResponse(BaseModel):
    """Envelope for a newly issued authentication token."""

    authentication_token: TokenPayload


class MessageResponse(BaseModel):
    """Envelope for a plain confirmation message."""

    message: str


class PermissionsResponse(BaseModel):
    """Envelope for the caller's permission codes."""

    permissions: List[str]
