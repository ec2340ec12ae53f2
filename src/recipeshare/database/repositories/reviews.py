"""Review and like repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from recipeshare.database.records import REVIEW_COLUMNS
from recipeshare.database.repositories.base import Repository, affected_rows


if TYPE_CHECKING:
    from asyncpg import Connection, Record

    from recipeshare.services.pagination import PageRequest, SortSpec


class ReviewRepository(Repository):
    """Queries over ``reviews`` and ``review_likes``."""

    async def get(self, review_id: int, conn: Connection | None = None) -> Record | None:
        """Ownership columns of a review: ``id``, ``recipe_id``, ``author_id``."""
        async with self._scope(conn) as c:
            return await c.fetchrow(
                "SELECT id, recipe_id, author_id FROM reviews WHERE id = $1",
                review_id,
            )

    async def create(
        self,
        recipe_id: int,
        author_id: int,
        rating: int,
        body: str | None,
        conn: Connection | None = None,
    ) -> int | None:
        """Insert a review with the next id from ``reviews_id_seq``.

        Returns:
            The new id, or None if the author already reviewed the recipe.
        """
        async with self._scope(conn) as c:
            return await c.fetchval(
                """
                INSERT INTO reviews (id, recipe_id, author_id, rating, body, submitted_at, modified_at)
                VALUES (nextval('reviews_id_seq'), $1, $2, $3, $4, now(), now())
                ON CONFLICT (recipe_id, author_id) DO NOTHING
                RETURNING id
                """,
                recipe_id,
                author_id,
                rating,
                body,
            )

    async def update(
        self,
        review_id: int,
        rating: int,
        body: str | None,
        conn: Connection | None = None,
    ) -> None:
        async with self._scope(conn) as c:
            await c.execute(
                """
                UPDATE reviews
                SET rating = $2, body = $3, modified_at = now()
                WHERE id = $1
                """,
                review_id,
                rating,
                body,
            )

    async def delete(self, review_id: int, conn: Connection | None = None) -> bool:
        """Delete a review and its like edges."""
        async with self._scope(conn) as c:
            await c.execute("DELETE FROM review_likes WHERE review_id = $1", review_id)
            status = await c.execute("DELETE FROM reviews WHERE id = $1", review_id)
        return affected_rows(status) == 1

    async def add_like(
        self, review_id: int, author_id: int, conn: Connection | None = None
    ) -> None:
        async with self._scope(conn) as c:
            await c.execute(
                """
                INSERT INTO review_likes (review_id, author_id)
                VALUES ($1, $2)
                ON CONFLICT DO NOTHING
                """,
                review_id,
                author_id,
            )

    async def remove_like(
        self, review_id: int, author_id: int, conn: Connection | None = None
    ) -> None:
        async with self._scope(conn) as c:
            await c.execute(
                "DELETE FROM review_likes WHERE review_id = $1 AND author_id = $2",
                review_id,
                author_id,
            )

    async def like_count(self, review_id: int, conn: Connection | None = None) -> int:
        async with self._scope(conn) as c:
            return await c.fetchval(
                "SELECT COUNT(*) FROM review_likes WHERE review_id = $1",
                review_id,
            )

    async def likers_for(
        self, review_ids: list[int], conn: Connection | None = None
    ) -> dict[int, list[int]]:
        """Liker ids of several reviews, keyed by review id."""
        result: dict[int, list[int]] = {review_id: [] for review_id in review_ids}
        if not review_ids:
            return result
        async with self._scope(conn) as c:
            rows = await c.fetch(
                """
                SELECT review_id, author_id
                FROM review_likes
                WHERE review_id = ANY($1::bigint[])
                ORDER BY review_id, author_id
                """,
                review_ids,
            )
        for row in rows:
            result[row["review_id"]].append(row["author_id"])
        return result

    async def list_for_recipe(
        self,
        recipe_id: int,
        order: SortSpec,
        page: PageRequest,
        conn: Connection | None = None,
    ) -> tuple[list[Record], int]:
        """One page of a recipe's reviews by active authors and the total count."""
        base = """
            FROM reviews v
            JOIN users u ON u.id = v.author_id AND u.is_deleted = FALSE
            WHERE v.recipe_id = $1
        """
        async with self._scope(conn) as c:
            total = await c.fetchval(f"SELECT COUNT(*) {base}", recipe_id)
            rows = await c.fetch(
                f"""
                SELECT {REVIEW_COLUMNS},
                       (SELECT COUNT(*) FROM review_likes l WHERE l.review_id = v.id) AS like_count
                {base}
                {order.sql()}
                LIMIT $2 OFFSET $3
                """,
                recipe_id,
                page.limit,
                page.offset,
            )
        return list(rows), total
