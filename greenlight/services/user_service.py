"""User persistence."""

from typing import Optional

import asyncpg
import structlog

from greenlight.database import connection
from greenlight.errors import DuplicateEmailError, EditConflictError, RecordNotFoundError
from greenlight.models.user import User, UserRecord

logger = structlog.get_logger(__name__)

USER_COLUMNS = "id, name, email, activated, version, created_at"


def row_to_user(row) -> User:
    """Build a User from a users row (or a join containing its columns)."""
    return User(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        activated=row["activated"],
        version=row["version"],
        created_at=row["created_at"],
    )


class UserService:
    """Service for user rows.

    Every method takes an optional ``conn`` so it can take part in a
    caller's transaction; without one it acquires its own connection.
    """

    async def insert(
        self,
        name: str,
        email: str,
        password_hash: bytes,
        activated: bool = False,
        conn: Optional[asyncpg.Connection] = None,
    ) -> User:
        """Insert a new user row.

        Args:
            name: Display name
            email: Email address (unique, case-insensitive)
            password_hash: Bcrypt hash of the password
            activated: Initial activation state

        Returns:
            Created User model

        Raises:
            DuplicateEmailError: If the email address is already registered
        """
        async with connection(conn) as c:
            try:
                row = await c.fetchrow(
                    f"""
                    INSERT INTO users (name, email, password_hash, activated)
                    VALUES ($1, $2, $3, $4)
                    RETURNING {USER_COLUMNS}
                    """,
                    name,
                    email,
                    password_hash,
                    activated,
                )
            except asyncpg.UniqueViolationError as e:
                if e.constraint_name == "users_email_key":
                    raise DuplicateEmailError(e.constraint_name) from e
                raise

        user = row_to_user(row)
        logger.info("user_created", user_id=user.id)
        return user

    async def get_by_email(
        self, email: str, conn: Optional[asyncpg.Connection] = None
    ) -> UserRecord:
        """Get a user and password hash by email (case-insensitive).

        Raises:
            RecordNotFoundError: If no user has this email
        """
        async with connection(conn) as c:
            row = await c.fetchrow(
                f"""
                SELECT {USER_COLUMNS}, password_hash
                FROM users
                WHERE email = $1
                """,
                email,
            )

        if row is None:
            raise RecordNotFoundError("user not found")

        return UserRecord(
            **row_to_user(row).model_dump(),
            password_hash=bytes(row["password_hash"]),
        )

    async def get_by_id(
        self, user_id: int, conn: Optional[asyncpg.Connection] = None
    ) -> User:
        """Get a user by id.

        Raises:
            RecordNotFoundError: If no user has this id
        """
        async with connection(conn) as c:
            row = await c.fetchrow(
                f"SELECT {USER_COLUMNS} FROM users WHERE id = $1",
                user_id,
            )

        if row is None:
            raise RecordNotFoundError("user not found")

        return row_to_user(row)

    async def activate(
        self,
        user_id: int,
        expected_version: int,
        conn: Optional[asyncpg.Connection] = None,
    ) -> User:
        """Mark a user activated if its version is still ``expected_version``.

        Raises:
            EditConflictError: If no row matched id and version
        """
        async with connection(conn) as c:
            row = await c.fetchrow(
                f"""
                UPDATE users
                SET activated = TRUE, version = version + 1
                WHERE id = $1 AND version = $2
                RETURNING {USER_COLUMNS}
                """,
                user_id,
                expected_version,
            )

        if row is None:
            logger.warning(
                "user_activation_conflict",
                user_id=user_id,
                expected_version=expected_version,
            )
            raise EditConflictError("user was modified concurrently")

        return row_to_user(row)

    async def update_password(
        self,
        user_id: int,
        password_hash: bytes,
        expected_version: int,
        conn: Optional[asyncpg.Connection] = None,
    ) -> User:
        """Replace a user's password hash if its version is unchanged.

        Raises:
            EditConflictError: If no row matched id and version
        """
        async with connection(conn) as c:
            row = await c.fetchrow(
                f"""
                UPDATE users
                SET password_hash = $1, version = version + 1
                WHERE id = $2 AND version = $3
                RETURNING {USER_COLUMNS}
                """,
                password_hash,
                user_id,
                expected_version,
            )

        if row is None:
            logger.warning(
                "user_password_update_conflict",
                user_id=user_id,
                expected_version=expected_version,
            )
            raise EditConflictError("user was modified concurrently")

        return row_to_user(row)

    async def list_users(self, limit: int, offset: int) -> list[User]:
        """Return a page of users ordered by id."""
        async with connection() as c:
            rows = await c.fetch(
                f"""
                SELECT {USER_COLUMNS}
                FROM users
                ORDER BY id ASC
                LIMIT $1 OFFSET $2
                """,
                limit,
                offset,
            )

        return [row_to_user(row) for row in rows]

    async def count_users(self) -> int:
        async with connection() as c:
            return await c.fetchval("SELECT COUNT(*) FROM users")
