"""Derived values kept consistent with the fact tables.

A recipe's ``agg_rating``/``review_count`` are rewritten inside the same
transaction as every review mutation. Follow counts are never stored by
the read path: they are counted from ``user_follows`` on every call.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from recipeshare.observability.logging import get_logger
from recipeshare.schemas.recipe import RecipeAggregate


if TYPE_CHECKING:
    from asyncpg import Connection

    from recipeshare.database.repositories.recipes import RecipeRepository
    from recipeshare.database.repositories.users import UserRepository

logger = get_logger(__name__)

RATING_QUANTUM = Decimal("0.01")


def round_rating(mean: Decimal | None) -> Decimal | None:
    """Round a mean rating to 2 decimal places, halves away from zero.

    ``None`` (no reviews) stays ``None``.
    """
    if mean is None:
        return None
    return Decimal(mean).quantize(RATING_QUANTUM, rounding=ROUND_HALF_UP)


class AggregateMaintainer:
    """Recomputes recipe ratings and derives follow counts."""

    def __init__(self, recipes: RecipeRepository, users: UserRepository) -> None:
        self._recipes = recipes
        self._users = users

    async def recompute_recipe_rating(
        self, conn: Connection, recipe_id: int
    ) -> RecipeAggregate:
        """Rewrite rating and count from the recipe's current reviews.

        ``conn`` must be the connection of the caller's open transaction so
        the aggregate commits or rolls back with the review change.
        """
        count, mean = await self._recipes.rating_stats(recipe_id, conn)
        rating = round_rating(mean) if count else None
        await self._recipes.write_aggregate(recipe_id, rating, count, conn)

        logger.debug(
            "Recipe aggregate recomputed",
            recipe_id=recipe_id,
            agg_rating=rating,
            review_count=count,
        )
        return RecipeAggregate(
            recipe_id=recipe_id,
            aggregated_rating=rating,
            review_count=count,
        )

    async def refresh_recipes(self, conn: Connection, recipe_ids: list[int]) -> int:
        """Recompute many recipes at once, e.g. after a bulk import."""
        refreshed = await self._recipes.refresh_aggregates(recipe_ids, conn)
        logger.debug("Recipe aggregates refreshed", recipes=refreshed)
        return refreshed

    async def follow_counts(
        self, user_id: int, conn: Connection | None = None
    ) -> tuple[int, int]:
        """``(followers, following)`` counted from the edge table."""
        return await self._users.follow_counts(user_id, conn)
