"""Bulk loader for external user, recipe and review datasets.

One import runs in a single transaction: schema first, then users,
recipes, ingredients, reviews, likes and follows, each flattened into
column tuples and sent in chunks of ``importing.batch_size`` rows. Every
insert skips duplicate keys and dangling references, so overlapping or
repeated batches load cleanly. Indexes, id sequences and recipe
aggregates are brought up to date before commit.
"""

from __future__ import annotations

import time
from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from recipeshare.core.exceptions import translate_storage_errors
from recipeshare.observability.logging import get_logger
from recipeshare.schemas.imports import ImportSummary, TableImportCount
from recipeshare.services.recipes import clean_ingredients
from recipeshare.services.reviews import MAX_RATING, MIN_RATING


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from asyncpg import Connection, Pool

    from recipeshare.core.config import ImportSettings
    from recipeshare.database.repositories.importing import ImportRepository
    from recipeshare.database.schema import SchemaManager
    from recipeshare.schemas.imports import (
        RecipeImportRecord,
        ReviewImportRecord,
        UserImportRecord,
    )
    from recipeshare.services.aggregates import AggregateMaintainer

logger = get_logger(__name__)

Row = tuple[Any, ...]
T = TypeVar("T")


def chunked(rows: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Consecutive slices of at most ``size`` rows."""
    if size <= 0:
        msg = "chunk size must be positive"
        raise ValueError(msg)
    for start in range(0, len(rows), size):
        yield rows[start : start + size]


# =============================================================================
# Record flattening
# =============================================================================


def user_rows(users: Sequence[UserImportRecord]) -> list[Row]:
    return [
        (
            u.author_id,
            u.author_name,
            u.gender,
            u.age,
            u.followers,
            u.following,
            u.password,
            u.is_deleted,
        )
        for u in users
    ]


def follow_rows(users: Sequence[UserImportRecord]) -> list[Row]:
    """Edges from ``followerUsers`` and ``followingUsers``, self-edges dropped."""
    edges: dict[Row, None] = {}
    for u in users:
        for follower in u.follower_users:
            edges[(follower, u.author_id)] = None
        for following in u.following_users:
            edges[(u.author_id, following)] = None
    return [edge for edge in edges if edge[0] != edge[1]]


def recipe_rows(recipes: Sequence[RecipeImportRecord]) -> list[Row]:
    return [
        (
            r.recipe_id,
            r.name,
            r.author_id,
            r.cook_time,
            r.prep_time,
            r.total_time,
            r.date_published,
            r.description,
            r.recipe_category,
            r.calories,
            r.fat_content,
            r.saturated_fat_content,
            r.cholesterol_content,
            r.sodium_content,
            r.carbohydrate_content,
            r.fiber_content,
            r.sugar_content,
            r.protein_content,
            r.recipe_servings,
            r.recipe_yield,
        )
        for r in recipes
    ]


def first_records(
    recipes: Sequence[RecipeImportRecord], created: set[int]
) -> list[RecipeImportRecord]:
    """The first record of each recipe id this import created, in input order."""
    seen: set[int] = set()
    records = []
    for r in recipes:
        if r.recipe_id in created and r.recipe_id not in seen:
            seen.add(r.recipe_id)
            records.append(r)
    return records


def ingredient_rows(recipes: Sequence[RecipeImportRecord]) -> list[Row]:
    """One row per distinct, non-blank ingredient of each recipe."""
    return [
        (r.recipe_id, ingredient)
        for r in recipes
        for ingredient in clean_ingredients(r.recipe_ingredient_parts)
    ]


def stored_rating(rating: float | None) -> int | None:
    """The whole 1..5 star value of a dataset rating, ``None`` when it has none."""
    if rating is None or not float(rating).is_integer():
        return None
    stars = int(rating)
    return stars if MIN_RATING <= stars <= MAX_RATING else None


def review_rows(reviews: Sequence[ReviewImportRecord]) -> list[Row]:
    """Reviews with a storable rating. Missing, fractional and out-of-range ones are skipped."""
    rows: list[Row] = []
    for v in reviews:
        stars = stored_rating(v.rating)
        if stars is None:
            continue
        rows.append(
            (
                v.review_id,
                v.recipe_id,
                v.author_id,
                stars,
                v.review,
                v.date_submitted,
                v.date_modified,
            )
        )
    return rows


def like_rows(reviews: Sequence[ReviewImportRecord]) -> list[Row]:
    """Like edges, without an author liking their own review."""
    edges: dict[Row, None] = {}
    for v in reviews:
        for liker in v.likes:
            if liker != v.author_id:
                edges[(v.review_id, liker)] = None
    return list(edges)


# =============================================================================
# Service
# =============================================================================


class BulkImportService:
    """Loads external datasets into the relational schema."""

    def __init__(
        self,
        pool: Pool,
        schema: SchemaManager,
        repository: ImportRepository,
        aggregates: AggregateMaintainer,
        settings: ImportSettings,
    ) -> None:
        self._pool = pool
        self._schema = schema
        self._repository = repository
        self._aggregates = aggregates
        self._batch_size = settings.batch_size

    async def import_batch(
        self,
        users: Sequence[UserImportRecord] | None = None,
        recipes: Sequence[RecipeImportRecord] | None = None,
        reviews: Sequence[ReviewImportRecord] | None = None,
    ) -> ImportSummary:
        """Import the given records in one transaction.

        Raises:
            StorageError: On any unexpected store failure; nothing is kept.
        """
        users = users or []
        recipes = recipes or []
        reviews = reviews or []
        started = time.perf_counter()

        logger.info(
            "Import started",
            users=len(users),
            recipes=len(recipes),
            reviews=len(reviews),
            batch_size=self._batch_size,
        )

        summary = ImportSummary()
        async with self._pool.acquire() as conn:
            with translate_storage_errors("import_batch"):
                async with conn.transaction():
                    await self._schema.ensure_schema(conn)

                    repo = self._repository
                    summary.users = await self._load(
                        conn, "users", user_rows(users), repo.insert_users
                    )
                    summary.recipes, created = await self._load_recipes(conn, recipes)
                    summary.ingredients = await self._load(
                        conn,
                        "recipe_ingredients",
                        ingredient_rows(first_records(recipes, created)),
                        repo.insert_ingredients,
                    )
                    summary.reviews = await self._load(
                        conn, "reviews", review_rows(reviews), repo.insert_reviews
                    )
                    summary.likes = await self._load(
                        conn, "review_likes", like_rows(reviews), repo.insert_likes
                    )
                    summary.follows = await self._load(
                        conn, "user_follows", follow_rows(users), repo.insert_follows
                    )

                    await self._schema.create_indexes(conn)
                    await self._schema.sync_sequences(conn)

                    touched = sorted(
                        {r.recipe_id for r in recipes} | {v.recipe_id for v in reviews}
                    )
                    await self._aggregates.refresh_recipes(conn, touched)

        summary.duration_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info("Import finished", **summary.model_dump(by_alias=False))
        return summary

    async def _load_recipes(
        self, conn: Connection, recipes: Sequence[RecipeImportRecord]
    ) -> tuple[TableImportCount, set[int]]:
        """Load recipes and return the ids this import created."""
        created: set[int] = set()

        async def insert(c: Connection, chunk: Sequence[Row]) -> int:
            ids = await self._repository.insert_recipes(c, chunk)
            created.update(ids)
            return len(ids)

        count = await self._load(conn, "recipes", recipe_rows(recipes), insert)
        return count, created

    async def _load(
        self,
        conn: Connection,
        table: str,
        rows: list[Row],
        insert: Callable[[Connection, Sequence[Row]], Awaitable[int]],
    ) -> TableImportCount:
        inserted = 0
        for index, chunk in enumerate(chunked(rows, self._batch_size)):
            accepted = await insert(conn, chunk)
            inserted += accepted
            logger.debug(
                "Import chunk applied",
                table=table,
                chunk=index,
                rows=len(chunk),
                inserted=accepted,
            )
        if rows:
            logger.info("Import table loaded", table=table, submitted=len(rows), inserted=inserted)
        return TableImportCount(submitted=len(rows), inserted=inserted)
