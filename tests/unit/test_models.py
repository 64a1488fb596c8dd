"""Unit tests for user, token, identity and request models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from greenlight.models.auth import (
    ActivateUserRequest,
    CreateAuthenticationTokenRequest,
    EmailRequest,
    RegisterUserRequest,
    ResetPasswordRequest,
    UserResponse,
)
from greenlight.models.user import (
    ANONYMOUS,
    AnonymousIdentity,
    AuthenticatedIdentity,
    IssuedToken,
    Permissions,
    Token,
    TokenScope,
    User,
    UserRecord,
)


def _user(**overrides) -> User:
    data = {
        "id": 1,
        "name": "Alice",
        "email": "a@b.com",
        "activated": True,
        "version": 1,
        "created_at": datetime.now(timezone.utc),
    }
    data.update(overrides)
    return User(**data)


class TestIdentity:
    def test_anonymous_is_tagged(self):
        assert ANONYMOUS.kind == "anonymous"
        assert ANONYMOUS.is_anonymous is True

    def test_anonymous_compares_by_kind_not_reference(self):
        assert AnonymousIdentity() == ANONYMOUS

    def test_authenticated_identity_carries_user(self):
        identity = AuthenticatedIdentity(user=_user(id=9))
        assert identity.kind == "authenticated"
        assert identity.is_anonymous is False
        assert identity.user.id == 9

    def test_identity_is_immutable(self):
        identity = AuthenticatedIdentity(user=_user())
        with pytest.raises(ValidationError):
            identity.user = _user(id=2)


class TestUserRecord:
    def test_password_hash_hidden_from_repr_and_public_model(self):
        record = UserRecord(**_user().model_dump(), password_hash=b"$2b$secret")
        assert "secret" not in repr(record)
        assert "password_hash" not in UserResponse(user=record).model_dump()["user"]


class TestTokens:
    def test_scope_values(self):
        assert [s.value for s in TokenScope] == [
            "activation",
            "authentication",
            "password-reset",
        ]

    def test_issued_token_exposes_expiry_and_hides_plaintext(self):
        now = datetime.now(timezone.utc)
        token = Token(
            user_id=1,
            hash=b"\x00" * 32,
            scope=TokenScope.ACTIVATION,
            expires_at=now + timedelta(days=3),
            created_at=now,
        )
        issued = IssuedToken(plaintext="Y3QMGX3PJ3WLRL2YRTQGQ6KRHU", token=token)

        assert issued.expires_at == now + timedelta(days=3)
        assert "Y3QMGX3PJ3WLRL2YRTQGQ6KRHU" not in repr(issued)


class TestPermissions:
    def test_includes(self):
        permissions = Permissions.of(["movies:read"])
        assert permissions.includes("movies:read")
        assert not permissions.includes("movies:write")

    def test_empty(self):
        assert not Permissions().includes("movies:read")


def _messages(exc_info) -> dict:
    """Map field -> message for a pydantic ValidationError."""
    return {
        str(err["loc"][0]): err["msg"].removeprefix("Value error, ")
        for err in exc_info.value.errors()
    }


class TestRequestModels:
    def test_register_valid(self):
        request = RegisterUserRequest(name="Alice", email="a@b.com", password="longenough1")
        assert request.email == "a@b.com"

    def test_register_reports_every_invalid_field(self):
        with pytest.raises(ValidationError) as exc_info:
            RegisterUserRequest(name="", email="bad", password="short")

        assert _messages(exc_info) == {
            "name": "must be provided",
            "email": "must be a valid email address",
            "password": "must be at least 8 bytes long",
        }

    def test_missing_fields_are_must_be_provided(self):
        with pytest.raises(ValidationError) as exc_info:
            CreateAuthenticationTokenRequest()

        assert _messages(exc_info) == {
            "email": "must be provided",
            "password": "must be provided",
        }

    def test_name_limit_counts_bytes(self):
        with pytest.raises(ValidationError) as exc_info:
            RegisterUserRequest(name="é" * 251, email="a@b.com", password="longenough1")

        assert _messages(exc_info) == {"name": "must not be more than 500 bytes long"}

    @pytest.mark.parametrize(
        "password,message",
        [
            ("short", "must be at least 8 bytes long"),
            ("x" * 73, "must not be more than 72 bytes long"),
            ("é" * 37, "must not be more than 72 bytes long"),
        ],
    )
    def test_password_length_in_bytes(self, password, message):
        with pytest.raises(ValidationError) as exc_info:
            ResetPasswordRequest(password=password, token="Y3QMGX3PJ3WLRL2YRTQGQ6KRHU")

        assert _messages(exc_info) == {"password": message}

    @pytest.mark.parametrize("email", ["a@b.com", "alice.smith+tag@example.co.uk"])
    def test_email_accepts(self, email):
        assert EmailRequest(email=email).email == email

    @pytest.mark.parametrize("email", ["not-an-email", "a@", "@b.com"])
    def test_email_rejects(self, email):
        with pytest.raises(ValidationError) as exc_info:
            EmailRequest(email=email)

        assert _messages(exc_info) == {"email": "must be a valid email address"}

    def test_token_must_be_26_bytes(self):
        with pytest.raises(ValidationError) as exc_info:
            ActivateUserRequest(token="ABC")

        assert _messages(exc_info) == {"token": "must be 26 bytes long"}

    def test_reset_password_checks_both_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            ResetPasswordRequest(password="short", token="")

        assert set(_messages(exc_info)) == {"password", "token"}
