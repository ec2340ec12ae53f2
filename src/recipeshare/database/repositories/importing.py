"""Conflict-tolerant multi-row inserts used by the bulk loader.

Each method takes one chunk of column-ordered tuples and sends it as a
single ``INSERT ... SELECT FROM unnest(...)`` statement. Duplicate keys and
rows whose foreign keys point at absent rows are skipped silently. The
return value is the number of rows the table actually accepted, or for
recipes the ids created.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from recipeshare.database.repositories.base import Repository, affected_rows


if TYPE_CHECKING:
    from asyncpg import Connection


_INSERT_USERS = """
    INSERT INTO users (
        id, name, gender, age, follower_count, following_count, credential, is_deleted
    )
    SELECT
        t.id, t.name, t.gender, t.age,
        GREATEST(COALESCE(t.follower_count, 0), 0),
        GREATEST(COALESCE(t.following_count, 0), 0),
        t.credential, COALESCE(t.is_deleted, FALSE)
    FROM unnest(
        $1::bigint[], $2::varchar[], $3::varchar[], $4::int[],
        $5::int[], $6::int[], $7::varchar[], $8::bool[]
    ) AS t(id, name, gender, age, follower_count, following_count, credential, is_deleted)
    ON CONFLICT DO NOTHING
"""

_INSERT_RECIPES = """
    INSERT INTO recipes (
        id, name, author_id, cook_time, prep_time, total_time, date_published,
        description, category, agg_rating, review_count,
        calories, fat, saturated_fat, cholesterol, sodium,
        carbohydrate, fiber, sugar, protein, servings, yield
    )
    SELECT
        t.id, t.name, t.author_id, t.cook_time, t.prep_time, t.total_time, t.date_published,
        t.description, t.category, NULL, 0,
        t.calories, t.fat, t.saturated_fat, t.cholesterol, t.sodium,
        t.carbohydrate, t.fiber, t.sugar, t.protein, t.servings, t.yield
    FROM unnest(
        $1::bigint[], $2::varchar[], $3::bigint[], $4::varchar[], $5::varchar[],
        $6::varchar[], $7::timestamptz[], $8::text[], $9::varchar[],
        $10::numeric[], $11::numeric[], $12::numeric[], $13::numeric[], $14::numeric[],
        $15::numeric[], $16::numeric[], $17::numeric[], $18::numeric[],
        $19::varchar[], $20::varchar[]
    ) AS t(
        id, name, author_id, cook_time, prep_time, total_time, date_published,
        description, category,
        calories, fat, saturated_fat, cholesterol, sodium,
        carbohydrate, fiber, sugar, protein, servings, yield
    )
    WHERE EXISTS (SELECT 1 FROM users u WHERE u.id = t.author_id)
    ON CONFLICT DO NOTHING
    RETURNING id
"""

_INSERT_INGREDIENTS = """
    INSERT INTO recipe_ingredients (recipe_id, ingredient)
    SELECT t.recipe_id, t.ingredient
    FROM unnest($1::bigint[], $2::text[]) AS t(recipe_id, ingredient)
    WHERE EXISTS (SELECT 1 FROM recipes r WHERE r.id = t.recipe_id)
    ON CONFLICT DO NOTHING
"""

_INSERT_REVIEWS = """
    INSERT INTO reviews (id, recipe_id, author_id, rating, body, submitted_at, modified_at)
    SELECT t.id, t.recipe_id, t.author_id, t.rating, t.body, t.submitted_at, t.modified_at
    FROM unnest(
        $1::bigint[], $2::bigint[], $3::bigint[], $4::int[],
        $5::text[], $6::timestamptz[], $7::timestamptz[]
    ) AS t(id, recipe_id, author_id, rating, body, submitted_at, modified_at)
    WHERE EXISTS (SELECT 1 FROM recipes r WHERE r.id = t.recipe_id)
      AND EXISTS (SELECT 1 FROM users u WHERE u.id = t.author_id)
    ON CONFLICT DO NOTHING
"""

_INSERT_LIKES = """
    INSERT INTO review_likes (review_id, author_id)
    SELECT t.review_id, t.author_id
    FROM unnest($1::bigint[], $2::bigint[]) AS t(review_id, author_id)
    WHERE EXISTS (SELECT 1 FROM reviews v WHERE v.id = t.review_id)
      AND EXISTS (SELECT 1 FROM users u WHERE u.id = t.author_id)
    ON CONFLICT DO NOTHING
"""

_INSERT_FOLLOWS = """
    INSERT INTO user_follows (follower_id, following_id)
    SELECT t.follower_id, t.following_id
    FROM unnest($1::bigint[], $2::bigint[]) AS t(follower_id, following_id)
    WHERE t.follower_id <> t.following_id
      AND EXISTS (SELECT 1 FROM users u WHERE u.id = t.follower_id AND NOT u.is_deleted)
      AND EXISTS (SELECT 1 FROM users u WHERE u.id = t.following_id AND NOT u.is_deleted)
    ON CONFLICT DO NOTHING
"""


def columns(rows: Sequence[tuple[Any, ...]], width: int) -> list[list[Any]]:
    """Transpose row tuples into one list per column for ``unnest``."""
    if not rows:
        return [[] for _ in range(width)]
    return [list(column) for column in zip(*rows, strict=True)]


class ImportRepository(Repository):
    """Chunk inserts for every imported table. ``conn`` is required: one import is one transaction."""

    async def _insert(
        self, conn: Connection, statement: str, rows: Sequence[tuple[Any, ...]], width: int
    ) -> int:
        if not rows:
            return 0
        status = await conn.execute(statement, *columns(rows, width))
        return affected_rows(status)

    async def insert_users(self, conn: Connection, rows: Sequence[tuple[Any, ...]]) -> int:
        return await self._insert(conn, _INSERT_USERS, rows, 8)

    async def insert_recipes(
        self, conn: Connection, rows: Sequence[tuple[Any, ...]]
    ) -> list[int]:
        """Insert a chunk of recipes and return the ids actually created.

        Ingredients are only loaded for these, so a skipped duplicate never
        adds to the ingredient set of the recipe already stored.
        """
        if not rows:
            return []
        records = await conn.fetch(_INSERT_RECIPES, *columns(rows, 20))
        return [record["id"] for record in records]

    async def insert_ingredients(
        self, conn: Connection, rows: Sequence[tuple[Any, ...]]
    ) -> int:
        return await self._insert(conn, _INSERT_INGREDIENTS, rows, 2)

    async def insert_reviews(self, conn: Connection, rows: Sequence[tuple[Any, ...]]) -> int:
        return await self._insert(conn, _INSERT_REVIEWS, rows, 7)

    async def insert_likes(self, conn: Connection, rows: Sequence[tuple[Any, ...]]) -> int:
        return await self._insert(conn, _INSERT_LIKES, rows, 2)

    async def insert_follows(self, conn: Connection, rows: Sequence[tuple[Any, ...]]) -> int:
        return await self._insert(conn, _INSERT_FOLLOWS, rows, 2)
