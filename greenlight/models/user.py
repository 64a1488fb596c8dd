"""User, token, permission and request-identity models."""

from datetime import datetime
from enum import Enum
from typing import FrozenSet, Iterable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class TokenScope(str, Enum):
    """What a token may be used for. Scope is part of the lookup key."""

    ACTIVATION = "activation"
    AUTHENTICATION = "authentication"
    PASSWORD_RESET = "password-reset"


class User(BaseModel):
    """A registered account. The password hash is deliberately absent."""

    id: int
    name: str
    email: str
    activated: bool = False
    version: int = 1
    created_at: datetime


class UserRecord(User):
    """A user row including its bcrypt password hash.

    Only returned by credential lookups; never serialized to clients.
    """

    password_hash: bytes = Field(repr=False)


class Token(BaseModel):
    """A persisted token row. Holds the SHA-256 digest, never the plaintext."""

    user_id: int
    hash: bytes = Field(repr=False)
    scope: TokenScope
    expires_at: datetime
    created_at: datetime


class IssuedToken(BaseModel):
    """A freshly generated token: the plaintext for the client plus its row."""

    plaintext: str = Field(repr=False)
    token: Token

    @property
    def expires_at(self) -> datetime:
        return self.token.expires_at


class Permissions(BaseModel):
    """The set of permission codes granted to a user."""

    model_config = ConfigDict(frozen=True)

    codes: FrozenSet[str] = frozenset()

    @classmethod
    def of(cls, codes: Iterable[str]) -> "Permissions":
        return cls(codes=frozenset(codes))

    def includes(self, code: str) -> bool:
        return code in self.codes


class AnonymousIdentity(BaseModel):
    """The identity of a request that carried no credentials."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["anonymous"] = "anonymous"

    @property
    def is_anonymous(self) -> bool:
        return True


class AuthenticatedIdentity(BaseModel):
    """The identity of a request whose bearer token resolved to a user."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["authenticated"] = "authenticated"
    user: User

    @property
    def is_anonymous(self) -> bool:
        return False


Identity = Union[AnonymousIdentity, AuthenticatedIdentity]

ANONYMOUS = AnonymousIdentity()
