"""Recipe repository: detail, search, feed, mutations and analytics."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from recipeshare.database.records import RECIPE_COLUMNS
from recipeshare.database.repositories.base import Repository, affected_rows
from recipeshare.observability.logging import get_logger
from recipeshare.services.pagination import FEED_SORT, contains_pattern


if TYPE_CHECKING:
    from asyncpg import Connection, Record

    from recipeshare.services.pagination import PageRequest, SortSpec

logger = get_logger(__name__)


_FROM_ACTIVE = "FROM recipes r JOIN users u ON u.id = r.author_id AND u.is_deleted = FALSE"

_CLOSEST_CALORIE_PAIR = """
    WITH ordered AS (
        SELECT
            id,
            calories,
            LAG(id) OVER w AS prev_id,
            LAG(calories) OVER w AS prev_calories
        FROM recipes
        WHERE calories IS NOT NULL
        WINDOW w AS (ORDER BY calories ASC, id ASC)
    ),
    pairs AS (
        SELECT
            LEAST(id, prev_id) AS recipe_a,
            GREATEST(id, prev_id) AS recipe_b,
            CASE WHEN id < prev_id THEN calories ELSE prev_calories END AS calories_a,
            CASE WHEN id < prev_id THEN prev_calories ELSE calories END AS calories_b,
            ABS(calories - prev_calories) AS difference
        FROM ordered
        WHERE prev_id IS NOT NULL
    )
    SELECT recipe_a, recipe_b, calories_a, calories_b, difference
    FROM pairs
    ORDER BY difference ASC, recipe_a ASC, recipe_b ASC
    LIMIT 1
"""

_TOP_BY_INGREDIENTS = """
    SELECT r.id, r.name, COUNT(DISTINCT ri.ingredient) AS ingredient_count
    FROM recipes r
    JOIN recipe_ingredients ri ON ri.recipe_id = r.id
    GROUP BY r.id, r.name
    ORDER BY ingredient_count DESC, r.id ASC
    LIMIT $1
"""


class RecipeFilter:
    """WHERE fragment plus positional arguments for recipe search."""

    def __init__(
        self,
        keyword: str | None = None,
        category: str | None = None,
        min_rating: Decimal | float | None = None,
    ) -> None:
        self.clauses: list[str] = []
        self.args: list[Any] = []

        if keyword and keyword.strip():
            self.args.append(contains_pattern(keyword.strip()))
            n = len(self.args)
            self.clauses.append(
                f"(r.name ILIKE ${n} ESCAPE '\\' OR r.description ILIKE ${n} ESCAPE '\\')"
            )
        if category and category.strip():
            self.args.append(category.strip())
            self.clauses.append(f"r.category = ${len(self.args)}")
        if min_rating is not None:
            self.args.append(Decimal(str(min_rating)))
            self.clauses.append(f"r.agg_rating >= ${len(self.args)}")

    def where(self) -> str:
        if not self.clauses:
            return ""
        return "WHERE " + " AND ".join(self.clauses)


class RecipeRepository(Repository):
    """Queries over ``recipes`` and ``recipe_ingredients``."""

    async def get_active(self, recipe_id: int, conn: Connection | None = None) -> Record | None:
        """Recipe row with author name; ``None`` if absent or its author is deleted."""
        async with self._scope(conn) as c:
            return await c.fetchrow(
                f"SELECT {RECIPE_COLUMNS} {_FROM_ACTIVE} WHERE r.id = $1",
                recipe_id,
            )

    async def get_name(self, recipe_id: int, conn: Connection | None = None) -> str | None:
        async with self._scope(conn) as c:
            return await c.fetchval("SELECT name FROM recipes WHERE id = $1", recipe_id)

    async def lock(self, recipe_id: int, conn: Connection) -> Record | None:
        """Lock a recipe row for the rest of the transaction.

        Serializes concurrent review mutations on the same recipe so each
        aggregate recompute sees every committed review.
        """
        return await conn.fetchrow(
            """
            SELECT r.id, r.author_id, r.cook_time, r.prep_time, u.is_deleted AS author_deleted
            FROM recipes r
            JOIN users u ON u.id = r.author_id
            WHERE r.id = $1
            FOR UPDATE OF r
            """,
            recipe_id,
        )

    async def ingredients(self, recipe_id: int, conn: Connection | None = None) -> list[str]:
        async with self._scope(conn) as c:
            rows = await c.fetch(
                "SELECT ingredient FROM recipe_ingredients WHERE recipe_id = $1",
                recipe_id,
            )
        return [row["ingredient"] for row in rows]

    async def ingredients_for(
        self, recipe_ids: list[int], conn: Connection | None = None
    ) -> dict[int, list[str]]:
        """Ingredients of several recipes, keyed by recipe id."""
        result: dict[int, list[str]] = {recipe_id: [] for recipe_id in recipe_ids}
        if not recipe_ids:
            return result
        async with self._scope(conn) as c:
            rows = await c.fetch(
                """
                SELECT recipe_id, ingredient
                FROM recipe_ingredients
                WHERE recipe_id = ANY($1::bigint[])
                """,
                recipe_ids,
            )
        for row in rows:
            result[row["recipe_id"]].append(row["ingredient"])
        return result

    async def search(
        self,
        filters: RecipeFilter,
        order: SortSpec,
        page: PageRequest,
        conn: Connection | None = None,
    ) -> tuple[list[Record], int]:
        """One page of matching recipes by active authors and the total count."""
        where = filters.where()
        active = "u.is_deleted = FALSE"
        where = f"{where} AND {active}" if where else f"WHERE {active}"
        base = f"FROM recipes r JOIN users u ON u.id = r.author_id {where}"
        n = len(filters.args)

        async with self._scope(conn) as c:
            total = await c.fetchval(f"SELECT COUNT(*) {base}", *filters.args)
            rows = await c.fetch(
                f"SELECT {RECIPE_COLUMNS} {base} {order.sql()} LIMIT ${n + 1} OFFSET ${n + 2}",
                *filters.args,
                page.limit,
                page.offset,
            )
        return list(rows), total

    async def feed(
        self,
        author_ids: list[int],
        category: str | None,
        page: PageRequest,
        conn: Connection | None = None,
    ) -> tuple[list[Record], int]:
        """One page of recipes by the given active authors, newest first."""
        args: list[Any] = [author_ids]
        where = "WHERE r.author_id = ANY($1::bigint[])"
        if category and category.strip():
            args.append(category.strip())
            where += f" AND r.category = ${len(args)}"
        base = f"{_FROM_ACTIVE} {where}"
        n = len(args)

        async with self._scope(conn) as c:
            total = await c.fetchval(f"SELECT COUNT(*) {base}", *args)
            rows = await c.fetch(
                f"""
                SELECT r.id, r.name, r.author_id, u.name AS author_name,
                       r.date_published, r.agg_rating, r.review_count
                {base} {FEED_SORT.sql()} LIMIT ${n + 1} OFFSET ${n + 2}
                """,
                *args,
                page.limit,
                page.offset,
            )
        return list(rows), total

    async def create(
        self,
        author_id: int,
        values: dict[str, Any],
        date_published: datetime,
        conn: Connection | None = None,
    ) -> int:
        """Insert a recipe with the next id from ``recipes_id_seq``."""
        async with self._scope(conn) as c:
            return await c.fetchval(
                """
                INSERT INTO recipes (
                    id, name, author_id, cook_time, prep_time, total_time,
                    date_published, description, category, agg_rating, review_count,
                    calories, fat, saturated_fat, cholesterol, sodium,
                    carbohydrate, fiber, sugar, protein, servings, yield
                )
                VALUES (
                    nextval('recipes_id_seq'), $1, $2, $3, $4, $5,
                    $6, $7, $8, NULL, 0,
                    $9, $10, $11, $12, $13,
                    $14, $15, $16, $17, $18, $19
                )
                RETURNING id
                """,
                values["name"],
                author_id,
                values.get("cook_time"),
                values.get("prep_time"),
                values.get("total_time"),
                date_published,
                values.get("description"),
                values.get("category"),
                values.get("calories"),
                values.get("fat"),
                values.get("saturated_fat"),
                values.get("cholesterol"),
                values.get("sodium"),
                values.get("carbohydrate"),
                values.get("fiber"),
                values.get("sugar"),
                values.get("protein"),
                values.get("servings"),
                values.get("yield"),
            )

    async def add_ingredients(
        self, recipe_id: int, ingredients: list[str], conn: Connection | None = None
    ) -> None:
        if not ingredients:
            return
        async with self._scope(conn) as c:
            await c.executemany(
                """
                INSERT INTO recipe_ingredients (recipe_id, ingredient)
                VALUES ($1, $2)
                ON CONFLICT DO NOTHING
                """,
                [(recipe_id, ingredient) for ingredient in ingredients],
            )

    async def delete(self, recipe_id: int, conn: Connection | None = None) -> bool:
        """Delete a recipe with its likes, reviews and ingredients."""
        async with self._scope(conn) as c:
            await c.execute(
                """
                DELETE FROM review_likes
                WHERE review_id IN (SELECT id FROM reviews WHERE recipe_id = $1)
                """,
                recipe_id,
            )
            await c.execute("DELETE FROM reviews WHERE recipe_id = $1", recipe_id)
            await c.execute("DELETE FROM recipe_ingredients WHERE recipe_id = $1", recipe_id)
            status = await c.execute("DELETE FROM recipes WHERE id = $1", recipe_id)
        return affected_rows(status) == 1

    async def update_times(
        self,
        recipe_id: int,
        cook_time: str | None,
        prep_time: str | None,
        total_time: str,
        conn: Connection | None = None,
    ) -> None:
        async with self._scope(conn) as c:
            await c.execute(
                """
                UPDATE recipes
                SET cook_time = $2, prep_time = $3, total_time = $4
                WHERE id = $1
                """,
                recipe_id,
                cook_time,
                prep_time,
                total_time,
            )

    async def rating_stats(
        self, recipe_id: int, conn: Connection | None = None
    ) -> tuple[int, Decimal | None]:
        """``(count, unrounded mean)`` of the recipe's current reviews."""
        async with self._scope(conn) as c:
            row = await c.fetchrow(
                """
                SELECT COUNT(*) AS review_count, AVG(rating::numeric) AS mean
                FROM reviews
                WHERE recipe_id = $1
                """,
                recipe_id,
            )
        return row["review_count"], row["mean"]

    async def write_aggregate(
        self,
        recipe_id: int,
        agg_rating: Decimal | None,
        review_count: int,
        conn: Connection | None = None,
    ) -> None:
        async with self._scope(conn) as c:
            await c.execute(
                "UPDATE recipes SET agg_rating = $2, review_count = $3 WHERE id = $1",
                recipe_id,
                agg_rating,
                review_count,
            )

    async def refresh_aggregates(
        self, recipe_ids: list[int], conn: Connection | None = None
    ) -> int:
        """Recompute rating and count of many recipes in one statement.

        ``ROUND`` on ``numeric`` rounds half away from zero, the same rule as
        ``round_rating`` for the non-negative means stored here.
        """
        if not recipe_ids:
            return 0
        async with self._scope(conn) as c:
            status = await c.execute(
                """
                UPDATE recipes r
                SET agg_rating = s.mean, review_count = s.review_count
                FROM (
                    SELECT
                        rec.id,
                        COUNT(v.id) AS review_count,
                        ROUND(AVG(v.rating::numeric), 2) AS mean
                    FROM recipes rec
                    LEFT JOIN reviews v ON v.recipe_id = rec.id
                    WHERE rec.id = ANY($1::bigint[])
                    GROUP BY rec.id
                ) s
                WHERE r.id = s.id
                """,
                recipe_ids,
            )
        return affected_rows(status)

    async def closest_calorie_pair(self, conn: Connection | None = None) -> Record | None:
        async with self._scope(conn) as c:
            return await c.fetchrow(_CLOSEST_CALORIE_PAIR)

    async def top_by_ingredients(
        self, limit: int, conn: Connection | None = None
    ) -> list[Record]:
        async with self._scope(conn) as c:
            return list(await c.fetch(_TOP_BY_INGREDIENTS, limit))
