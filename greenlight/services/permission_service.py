"""Permission catalog and per-user grants."""

from typing import Iterable, Optional

import asyncpg
import structlog

from greenlight.database import connection
from greenlight.models.user import Permissions

logger = structlog.get_logger(__name__)


class PermissionService:
    """Service for reading and granting permission codes."""

    async def get_all_for_user(
        self, user_id: int, conn: Optional[asyncpg.Connection] = None
    ) -> Permissions:
        """Return every permission code granted to a user.

        Args:
            user_id: Owner of the grants

        Returns:
            Permissions set (empty if the user has none)
        """
        async with connection(conn) as c:
            rows = await c.fetch(
                """
                SELECT permissions.code
                FROM permissions
                INNER JOIN users_permissions
                    ON users_permissions.permission_id = permissions.id
                WHERE users_permissions.user_id = $1
                """,
                user_id,
            )

        return Permissions.of(row["code"] for row in rows)

    async def add_for_user(
        self,
        user_id: int,
        codes: Iterable[str],
        conn: Optional[asyncpg.Connection] = None,
    ) -> None:
        """Grant the given permission codes to a user.

        Unknown codes are ignored; codes already granted are left as they are.
        """
        codes = list(codes)
        if not codes:
            return

        async with connection(conn) as c:
            await c.execute(
                """
                INSERT INTO users_permissions (user_id, permission_id)
                SELECT $1, permissions.id
                FROM permissions
                WHERE permissions.code = ANY($2::text[])
                ON CONFLICT DO NOTHING
                """,
                user_id,
                codes,
            )

        logger.info("permissions_granted", user_id=user_id, codes=codes)
