"""Opaque token issuance, lookup and revocation."""

import base64
import hashlib
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import asyncpg
import structlog

from greenlight.database import connection
from greenlight.errors import RecordNotFoundError
from greenlight.models.user import IssuedToken, Token, TokenScope, User
from greenlight.services.user_service import row_to_user

logger = structlog.get_logger(__name__)

TOKEN_ENTROPY_BYTES = 16
# 16 bytes of entropy encode to 26 unpadded base32 characters
TOKEN_PLAINTEXT_RX = re.compile(r"^[A-Z2-7]{26}$")


def hash_token(plaintext: str) -> bytes:
    """Return the SHA-256 digest stored in place of a token's plaintext."""
    return hashlib.sha256(plaintext.encode("utf-8")).digest()


def is_valid_token_format(plaintext: str) -> bool:
    """Check that a presented token could have been issued by generate_token."""
    return bool(TOKEN_PLAINTEXT_RX.match(plaintext))


def _new_plaintext() -> str:
    random_bytes = secrets.token_bytes(TOKEN_ENTROPY_BYTES)
    return base64.b32encode(random_bytes).decode("ascii").rstrip("=")


class TokenService:
    """Service for stateful bearer tokens.

    Only the digest of a token reaches the database, so a leaked tokens
    table cannot be replayed. Scope is always part of the lookup key.
    """

    async def generate_token(
        self,
        user_id: int,
        ttl: timedelta,
        scope: TokenScope,
        conn: Optional[asyncpg.Connection] = None,
    ) -> IssuedToken:
        """Create a token for a user and persist its digest.

        Args:
            user_id: Owner of the token
            ttl: Lifetime from now
            scope: What the token may be used for

        Returns:
            IssuedToken with the plaintext to hand to the client
        """
        plaintext = _new_plaintext()
        now = datetime.now(timezone.utc)
        token = Token(
            user_id=user_id,
            hash=hash_token(plaintext),
            scope=scope,
            expires_at=now + ttl,
            created_at=now,
        )

        async with connection(conn) as c:
            await c.execute(
                """
                INSERT INTO tokens (hash, user_id, expires_at, scope, created_at)
                VALUES ($1, $2, $3, $4, $5)
                """,
                token.hash,
                token.user_id,
                token.expires_at,
                token.scope.value,
                token.created_at,
            )

        logger.info(
            "token_created",
            user_id=user_id,
            token_scope=scope.value,
            expires_at=token.expires_at.isoformat(),
        )

        return IssuedToken(plaintext=plaintext, token=token)

    async def get_user_for_token(
        self,
        plaintext: str,
        scope: TokenScope,
        conn: Optional[asyncpg.Connection] = None,
    ) -> User:
        """Resolve an unexpired token of the given scope to its owner.

        Raises:
            RecordNotFoundError: If the token is unknown, has another scope,
                or has expired. The cases are not distinguished.
        """
        async with connection(conn) as c:
            row = await c.fetchrow(
                """
                SELECT users.id, users.name, users.email, users.activated,
                       users.version, users.created_at
                FROM users
                INNER JOIN tokens ON tokens.user_id = users.id
                WHERE tokens.hash = $1
                  AND tokens.scope = $2
                  AND tokens.expires_at > NOW()
                """,
                hash_token(plaintext),
                scope.value,
            )

        if row is None:
            raise RecordNotFoundError("token not found")

        return row_to_user(row)

    async def delete_all_for_user(
        self,
        user_id: int,
        scope: TokenScope,
        conn: Optional[asyncpg.Connection] = None,
    ) -> int:
        """Delete every token of ``scope`` owned by a user.

        Returns:
            Number of rows deleted
        """
        async with connection(conn) as c:
            result = await c.execute(
                "DELETE FROM tokens WHERE user_id = $1 AND scope = $2",
                user_id,
                scope.value,
            )

        deleted = _rows_affected(result)
        logger.info(
            "tokens_revoked",
            user_id=user_id,
            token_scope=scope.value,
            tokens_deleted=deleted,
        )
        return deleted

    async def delete_expired(self, conn: Optional[asyncpg.Connection] = None) -> int:
        """Remove tokens whose expiry has passed.

        Returns:
            Number of rows deleted
        """
        async with connection(conn) as c:
            result = await c.execute("DELETE FROM tokens WHERE expires_at <= NOW()")

        deleted = _rows_affected(result)
        if deleted:
            logger.info("expired_tokens_deleted", tokens_deleted=deleted)
        return deleted


def _rows_affected(status: Optional[str]) -> int:
    """Parse the row count out of an asyncpg status string like 'DELETE 3'."""
    try:
        return int((status or "").rsplit(" ", 1)[-1])
    except ValueError:
        return 0
