"""Review service: the review lifecycle, likes and listing.

Every review mutation locks the recipe row, applies the change and
recomputes the recipe aggregate in one transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from recipeshare.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
    translate_storage_errors,
)
from recipeshare.database.records import review_from_row
from recipeshare.observability.logging import get_logger
from recipeshare.services.pagination import PageRequest, review_sort


if TYPE_CHECKING:
    from asyncpg import Connection, Pool, Record

    from recipeshare.core.config import PaginationSettings
    from recipeshare.database.repositories.recipes import RecipeRepository
    from recipeshare.database.repositories.reviews import ReviewRepository
    from recipeshare.schemas.pagination import Page
    from recipeshare.schemas.recipe import RecipeRecord
    from recipeshare.schemas.review import ReviewRecord
    from recipeshare.schemas.user import AuthInfo
    from recipeshare.services.aggregates import AggregateMaintainer
    from recipeshare.services.identity import IdentityGuard
    from recipeshare.services.recipes import RecipeService

logger = get_logger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def validate_rating(rating: int | None) -> int:
    """Ratings are whole numbers from 1 to 5."""
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("rating must be an integer", field="rating")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(
            f"rating must be between {MIN_RATING} and {MAX_RATING}", field="rating"
        )
    return rating


class ReviewService:
    """Operations on reviews and review likes."""

    def __init__(
        self,
        pool: Pool,
        reviews: ReviewRepository,
        recipes: RecipeRepository,
        recipe_service: RecipeService,
        guard: IdentityGuard,
        aggregates: AggregateMaintainer,
        pagination: PaginationSettings,
    ) -> None:
        self._pool = pool
        self._reviews = reviews
        self._recipes = recipes
        self._recipe_service = recipe_service
        self._guard = guard
        self._aggregates = aggregates
        self._pagination = pagination

    async def _lock_active_recipe(self, recipe_id: int, conn: Connection) -> Record:
        recipe = await self._recipes.lock(recipe_id, conn)
        if recipe is None or recipe["author_deleted"]:
            raise NotFoundError("Recipe", recipe_id)
        return recipe

    async def _owned_review(
        self, review_id: int, recipe_id: int, user_id: int, conn: Connection
    ) -> Record:
        review = await self._reviews.get(review_id, conn)
        if review is None or review["recipe_id"] != recipe_id:
            raise NotFoundError("Review", review_id)
        if review["author_id"] != user_id:
            logger.warning(
                "Review change denied", review_id=review_id, author_id=user_id
            )
            raise AuthorizationError("Only the author may change this review")
        return review

    async def add_review(
        self,
        auth: AuthInfo | None,
        recipe_id: int,
        rating: int | None,
        body: str | None = None,
    ) -> int:
        """Add the caller's review of a recipe and return its id.

        Raises:
            ValidationError: If the rating is not an integer 1..5.
            AuthorizationError: If the identity is rejected or the caller
                already reviewed the recipe.
            NotFoundError: If the recipe is missing or its author is inactive.
        """
        rating = validate_rating(rating)

        async with self._pool.acquire() as conn:
            with translate_storage_errors("add_review", recipe_id=recipe_id):
                async with conn.transaction():
                    user_id = await self._guard.authenticate(auth, conn)
                    await self._lock_active_recipe(recipe_id, conn)
                    review_id = await self._reviews.create(
                        recipe_id, user_id, rating, body, conn
                    )
                    if review_id is None:
                        raise AuthorizationError("Recipe already reviewed by this user")
                    await self._aggregates.recompute_recipe_rating(conn, recipe_id)

        logger.info(
            "Review added", review_id=review_id, recipe_id=recipe_id, author_id=user_id
        )
        return review_id

    async def edit_review(
        self,
        auth: AuthInfo | None,
        recipe_id: int,
        review_id: int,
        rating: int | None,
        body: str | None = None,
    ) -> None:
        """Replace rating and text of the caller's review.

        Raises:
            ValidationError: If the rating is not an integer 1..5.
            NotFoundError: If the recipe or the review is missing, or the
                review belongs to another recipe.
            AuthorizationError: If the caller is not the review's author.
        """
        rating = validate_rating(rating)

        async with self._pool.acquire() as conn:
            with translate_storage_errors("edit_review", review_id=review_id):
                async with conn.transaction():
                    user_id = await self._guard.authenticate(auth, conn)
                    await self._lock_active_recipe(recipe_id, conn)
                    await self._owned_review(review_id, recipe_id, user_id, conn)
                    await self._reviews.update(review_id, rating, body, conn)
                    await self._aggregates.recompute_recipe_rating(conn, recipe_id)

        logger.info("Review edited", review_id=review_id, recipe_id=recipe_id)

    async def delete_review(
        self, auth: AuthInfo | None, recipe_id: int, review_id: int
    ) -> None:
        """Delete the caller's review together with its likes.

        Raises:
            NotFoundError: If the review is missing or belongs to another recipe.
            AuthorizationError: If the caller is not the review's author.
        """
        async with self._pool.acquire() as conn:
            with translate_storage_errors("delete_review", review_id=review_id):
                async with conn.transaction():
                    user_id = await self._guard.authenticate(auth, conn)
                    if await self._recipes.lock(recipe_id, conn) is None:
                        raise NotFoundError("Recipe", recipe_id)
                    await self._owned_review(review_id, recipe_id, user_id, conn)
                    await self._reviews.delete(review_id, conn)
                    await self._aggregates.recompute_recipe_rating(conn, recipe_id)

        logger.info("Review deleted", review_id=review_id, recipe_id=recipe_id)

    async def like_review(self, auth: AuthInfo | None, review_id: int) -> int:
        """Like a review; liking twice is a no-op. Returns the like count.

        Raises:
            NotFoundError: If the review does not exist.
            AuthorizationError: If the caller wrote the review.
        """
        async with self._pool.acquire() as conn:
            with translate_storage_errors("like_review", review_id=review_id):
                async with conn.transaction():
                    user_id = await self._guard.authenticate(auth, conn)
                    review = await self._reviews.get(review_id, conn)
                    if review is None:
                        raise NotFoundError("Review", review_id)
                    if review["author_id"] == user_id:
                        raise AuthorizationError("Cannot like your own review")
                    await self._reviews.add_like(review_id, user_id, conn)
                    likes = await self._reviews.like_count(review_id, conn)

        logger.info("Review liked", review_id=review_id, author_id=user_id, likes=likes)
        return likes

    async def unlike_review(self, auth: AuthInfo | None, review_id: int) -> int:
        """Remove the caller's like, if any. Returns the like count.

        Raises:
            NotFoundError: If the review does not exist.
        """
        async with self._pool.acquire() as conn:
            with translate_storage_errors("unlike_review", review_id=review_id):
                async with conn.transaction():
                    user_id = await self._guard.authenticate(auth, conn)
                    if await self._reviews.get(review_id, conn) is None:
                        raise NotFoundError("Review", review_id)
                    await self._reviews.remove_like(review_id, user_id, conn)
                    likes = await self._reviews.like_count(review_id, conn)

        logger.info("Review unliked", review_id=review_id, author_id=user_id, likes=likes)
        return likes

    async def list_reviews(
        self,
        recipe_id: int,
        page: int = 1,
        size: int | None = None,
        sort: str | None = None,
    ) -> Page[ReviewRecord]:
        """Page of a recipe's reviews by active authors, with sorted liker ids.

        Raises:
            ValidationError: If the page window is invalid.
            NotFoundError: If the recipe is missing or its author is inactive.
        """
        request = PageRequest.of(
            page,
            self._pagination.default_page_size if size is None else size,
            self._pagination.max_page_size,
        )
        order = review_sort(sort)

        async with self._pool.acquire() as conn:
            with translate_storage_errors("list_reviews", recipe_id=recipe_id):
                if await self._recipes.get_active(recipe_id, conn) is None:
                    raise NotFoundError("Recipe", recipe_id)
                rows, total = await self._reviews.list_for_recipe(
                    recipe_id, order, request, conn
                )
                likers = await self._reviews.likers_for([row["id"] for row in rows], conn)

        items = [review_from_row(row, likers[row["id"]]) for row in rows]
        return request.to_page(items, total)

    async def refresh_recipe_aggregated_rating(self, recipe_id: int) -> RecipeRecord:
        """Recompute a recipe's aggregate from its reviews and return the recipe.

        Raises:
            NotFoundError: If the recipe does not exist.
        """
        async with self._pool.acquire() as conn:
            with translate_storage_errors("refresh_rating", recipe_id=recipe_id):
                async with conn.transaction():
                    if await self._recipes.lock(recipe_id, conn) is None:
                        raise NotFoundError("Recipe", recipe_id)
                    await self._aggregates.recompute_recipe_rating(conn, recipe_id)

        return await self._recipe_service.get_recipe(recipe_id)
