"""User and follow-graph repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from recipeshare.database.repositories.base import Repository, affected_rows
from recipeshare.observability.logging import get_logger


if TYPE_CHECKING:
    from asyncpg import Connection, Record

logger = get_logger(__name__)


_USER_COLUMNS = "id, name, gender, age, is_deleted"

_HIGHEST_FOLLOW_RATIO = """
    WITH counts AS (
        SELECT
            u.id,
            u.name,
            (SELECT COUNT(*) FROM user_follows f WHERE f.following_id = u.id) AS followers,
            (SELECT COUNT(*) FROM user_follows f WHERE f.follower_id = u.id) AS following
        FROM users u
        WHERE u.is_deleted = FALSE
    )
    SELECT id, name, followers::numeric / following AS ratio
    FROM counts
    WHERE following > 0
    ORDER BY ratio DESC, id ASC
    LIMIT 1
"""


class UserRepository(Repository):
    """Queries over ``users`` and ``user_follows``."""

    async def get(self, user_id: int, conn: Connection | None = None) -> Record | None:
        """Profile columns of a user, deleted or not."""
        async with self._scope(conn) as c:
            return await c.fetchrow(
                f"SELECT {_USER_COLUMNS} FROM users WHERE id = $1",
                user_id,
            )

    async def get_identity(
        self, user_id: int, conn: Connection | None = None
    ) -> Record | None:
        """``id``, ``credential`` and ``is_deleted`` for identity checks."""
        async with self._scope(conn) as c:
            return await c.fetchrow(
                "SELECT id, credential, is_deleted FROM users WHERE id = $1",
                user_id,
            )

    async def name_taken(self, name: str, conn: Connection | None = None) -> bool:
        async with self._scope(conn) as c:
            return bool(
                await c.fetchval("SELECT EXISTS (SELECT 1 FROM users WHERE name = $1)", name)
            )

    async def create(
        self,
        name: str,
        gender: str,
        age: int,
        credential: str,
        conn: Connection | None = None,
    ) -> int:
        """Insert a user with the next id from ``users_id_seq``."""
        async with self._scope(conn) as c:
            return await c.fetchval(
                """
                INSERT INTO users (id, name, gender, age, credential)
                VALUES (nextval('users_id_seq'), $1, $2, $3, $4)
                RETURNING id
                """,
                name,
                gender,
                age,
                credential,
            )

    async def update_profile(
        self,
        user_id: int,
        gender: str | None,
        age: int | None,
        conn: Connection | None = None,
    ) -> None:
        """Set the given fields; ``None`` keeps the stored value."""
        async with self._scope(conn) as c:
            await c.execute(
                """
                UPDATE users
                SET gender = COALESCE($2, gender), age = COALESCE($3, age)
                WHERE id = $1
                """,
                user_id,
                gender,
                age,
            )

    async def soft_delete(self, user_id: int, conn: Connection | None = None) -> bool:
        """Flag the user deleted and drop its follow edges in both directions."""
        async with self._scope(conn) as c:
            status = await c.execute(
                "UPDATE users SET is_deleted = TRUE WHERE id = $1 AND is_deleted = FALSE",
                user_id,
            )
            removed = await c.execute(
                "DELETE FROM user_follows WHERE follower_id = $1 OR following_id = $1",
                user_id,
            )
        logger.debug("Follow edges removed", user_id=user_id, edges=affected_rows(removed))
        return affected_rows(status) == 1

    async def follower_ids(self, user_id: int, conn: Connection | None = None) -> list[int]:
        async with self._scope(conn) as c:
            rows = await c.fetch(
                "SELECT follower_id FROM user_follows WHERE following_id = $1 ORDER BY follower_id",
                user_id,
            )
        return [row["follower_id"] for row in rows]

    async def following_ids(self, user_id: int, conn: Connection | None = None) -> list[int]:
        async with self._scope(conn) as c:
            rows = await c.fetch(
                "SELECT following_id FROM user_follows WHERE follower_id = $1 ORDER BY following_id",
                user_id,
            )
        return [row["following_id"] for row in rows]

    async def follow_counts(
        self, user_id: int, conn: Connection | None = None
    ) -> tuple[int, int]:
        """``(followers, following)`` counted from the edge table."""
        async with self._scope(conn) as c:
            row = await c.fetchrow(
                """
                SELECT
                    (SELECT COUNT(*) FROM user_follows WHERE following_id = $1) AS followers,
                    (SELECT COUNT(*) FROM user_follows WHERE follower_id = $1) AS following
                """,
                user_id,
            )
        return row["followers"], row["following"]

    async def toggle_follow(
        self, follower_id: int, following_id: int, conn: Connection | None = None
    ) -> bool:
        """Remove the edge when present, add it otherwise.

        Returns:
            True if the edge exists afterwards.
        """
        async with self._scope(conn) as c:
            removed = await c.fetchval(
                """
                DELETE FROM user_follows
                WHERE follower_id = $1 AND following_id = $2
                RETURNING 1
                """,
                follower_id,
                following_id,
            )
            if removed:
                return False
            await c.execute(
                """
                INSERT INTO user_follows (follower_id, following_id)
                VALUES ($1, $2)
                ON CONFLICT DO NOTHING
                """,
                follower_id,
                following_id,
            )
        return True

    async def highest_follow_ratio(self, conn: Connection | None = None) -> Record | None:
        """Active user with the highest followers / following ratio."""
        async with self._scope(conn) as c:
            return await c.fetchrow(_HIGHEST_FOLLOW_RATIO)
