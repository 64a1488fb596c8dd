"""Unit tests for the authorization gate dependencies."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from greenlight.api.dependencies import (
    get_identity,
    require_activated,
    require_authenticated,
    require_permission,
)
from greenlight.api.errors import http_exception_handler, unhandled_exception_handler
from greenlight.models.user import ANONYMOUS, AuthenticatedIdentity, Permissions, User


def _identity(activated: bool = True) -> AuthenticatedIdentity:
    return AuthenticatedIdentity(
        user=User(
            id=7,
            name="Alice",
            email="a@b.com",
            activated=activated,
            version=1,
            created_at=datetime.now(timezone.utc),
        )
    )


@pytest.fixture
def app():
    app = FastAPI()
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/authenticated")
    async def authenticated(user: User = Depends(require_authenticated)):
        return {"user_id": user.id}

    @app.get("/activated")
    async def activated(user: User = Depends(require_activated)):
        return {"user_id": user.id}

    @app.get("/write")
    async def write(user: User = Depends(require_permission("movies:write"))):
        return {"user_id": user.id}

    @app.get("/identity")
    async def identity(first=Depends(get_identity)):
        return {"kind": first.kind}

    return app


def _client(app, identity) -> TestClient:
    app.dependency_overrides[get_identity] = lambda: identity
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def permission_service():
    with patch("greenlight.api.dependencies.PermissionService") as MockPermissionService:
        yield MockPermissionService.return_value


class TestGetIdentity:
    def test_defaults_to_anonymous_without_middleware(self, app):
        response = TestClient(app).get("/identity")
        assert response.json() == {"kind": "anonymous"}


class TestRequireAuthenticated:
    def test_rejects_anonymous(self, app):
        response = _client(app, ANONYMOUS).get("/authenticated")

        assert response.status_code == 401
        assert response.json() == {
            "error": "you must be an authenticated user in order to access this resource"
        }

    def test_accepts_authenticated_even_if_inactive(self, app):
        response = _client(app, _identity(activated=False)).get("/authenticated")
        assert response.status_code == 200


class TestRequireActivated:
    def test_anonymous_fails_authentication_first(self, app):
        assert _client(app, ANONYMOUS).get("/activated").status_code == 401

    def test_rejects_inactive(self, app):
        response = _client(app, _identity(activated=False)).get("/activated")

        assert response.status_code == 403
        assert response.json() == {
            "error": "your user account must be activated to access this resource"
        }

    def test_accepts_activated(self, app):
        response = _client(app, _identity()).get("/activated")
        assert response.json() == {"user_id": 7}


class TestRequirePermission:
    def test_rejects_user_without_code(self, app, permission_service):
        permission_service.get_all_for_user = AsyncMock(
            return_value=Permissions.of(["movies:read"])
        )

        response = _client(app, _identity()).get("/write")

        assert response.status_code == 403
        assert response.json() == {
            "error": "your user account doesn't have the necessary permissions to access this resource"
        }
        permission_service.get_all_for_user.assert_awaited_once_with(7)

    def test_accepts_user_with_code(self, app, permission_service):
        permission_service.get_all_for_user = AsyncMock(
            return_value=Permissions.of(["movies:read", "movies:write"])
        )

        response = _client(app, _identity()).get("/write")

        assert response.status_code == 200

    def test_inactive_user_rejected_before_permission_lookup(self, app, permission_service):
        permission_service.get_all_for_user = AsyncMock()

        response = _client(app, _identity(activated=False)).get("/write")

        assert response.status_code == 403
        permission_service.get_all_for_user.assert_not_awaited()

    def test_store_error_is_500_not_403(self, app, permission_service):
        permission_service.get_all_for_user = AsyncMock(side_effect=ConnectionError("down"))

        response = _client(app, _identity()).get("/write")

        assert response.status_code == 500
