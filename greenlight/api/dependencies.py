"""FastAPI dependencies for identity and authorization gates.

The gates chain: require_permission -> require_activated ->
require_authenticated -> get_identity. Each one short-circuits the request
with an HTTPException when its check fails.
"""

from typing import Awaitable, Callable

from fastapi import Depends, HTTPException, Request, status

from greenlight.api.errors import ACTIVATION_REQUIRED, AUTHENTICATION_REQUIRED, NOT_PERMITTED
from greenlight.models.user import ANONYMOUS, AuthenticatedIdentity, Identity, User
from greenlight.services.permission_service import PermissionService


def get_identity(request: Request) -> Identity:
    """Return the identity resolved for this request.

    Falls back to ANONYMOUS when AuthenticationMiddleware did not run.
    Repeated calls return the same value.
    """
    identity = getattr(request.state, "identity", None)
    if identity is None:
        identity = ANONYMOUS
        request.state.identity = identity
    return identity


async def require_authenticated(identity: Identity = Depends(get_identity)) -> User:
    """Require a non-anonymous identity.

    Raises:
        HTTPException 401: If the request carried no valid token
    """
    if not isinstance(identity, AuthenticatedIdentity):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AUTHENTICATION_REQUIRED,
        )
    return identity.user


async def require_activated(user: User = Depends(require_authenticated)) -> User:
    """Require an authenticated user whose account is activated.

    Raises:
        HTTPException 403: If the account has not been activated
    """
    if not user.activated:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=ACTIVATION_REQUIRED,
        )
    return user


def require_permission(code: str) -> Callable[..., Awaitable[User]]:
    """Build a dependency requiring an activated user holding ``code``.

    Store errors while loading permissions propagate and become a 500.

    Example:
        @router.get("/", dependencies=[Depends(require_permission("users:read"))])
    """

    async def dependency(user: User = Depends(require_activated)) -> User:
        permissions = await PermissionService().get_all_for_user(user.id)
        if not permissions.includes(code):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=NOT_PERMITTED,
            )
        return user

    return dependency
