"""Recipe service: detail, search, authoring and analytics."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from recipeshare.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
    translate_storage_errors,
)
from recipeshare.database.records import recipe_from_row
from recipeshare.database.repositories.recipes import RecipeFilter
from recipeshare.observability.logging import get_logger
from recipeshare.schemas.recipe import CaloriePair, IngredientComplexity
from recipeshare.services.durations import parse_duration, total_time
from recipeshare.services.pagination import PageRequest, recipe_sort


if TYPE_CHECKING:
    from decimal import Decimal

    from asyncpg import Connection, Pool

    from recipeshare.core.config import PaginationSettings
    from recipeshare.database.repositories.recipes import RecipeRepository
    from recipeshare.schemas.pagination import Page
    from recipeshare.schemas.recipe import RecipeCreate, RecipeRecord
    from recipeshare.schemas.user import AuthInfo
    from recipeshare.services.identity import IdentityGuard

logger = get_logger(__name__)

TOP_COMPLEX_LIMIT = 3


def clean_ingredients(parts: list[str] | None) -> list[str]:
    """Trimmed, non-blank ingredients with duplicates removed, order kept."""
    seen: set[str] = set()
    result: list[str] = []
    for part in parts or []:
        text = part.strip() if part else ""
        if text and text not in seen:
            seen.add(text)
            result.append(text)
    return result


def _require_positive_id(recipe_id: int) -> None:
    if recipe_id <= 0:
        raise ValidationError("recipe id must be > 0", field="recipeId")


class RecipeService:
    """Operations on recipes."""

    def __init__(
        self,
        pool: Pool,
        recipes: RecipeRepository,
        guard: IdentityGuard,
        pagination: PaginationSettings,
    ) -> None:
        self._pool = pool
        self._recipes = recipes
        self._guard = guard
        self._pagination = pagination

    async def get_recipe(self, recipe_id: int) -> RecipeRecord:
        """Recipe with its case-insensitively sorted ingredients.

        Raises:
            ValidationError: If ``recipe_id <= 0``.
            NotFoundError: If the recipe is missing or its author is inactive.
        """
        _require_positive_id(recipe_id)
        async with self._pool.acquire() as conn:
            with translate_storage_errors("get_recipe", recipe_id=recipe_id):
                return await self._load(recipe_id, conn)

    async def _load(self, recipe_id: int, conn: Connection) -> RecipeRecord:
        row = await self._recipes.get_active(recipe_id, conn)
        if row is None:
            raise NotFoundError("Recipe", recipe_id)
        ingredients = await self._recipes.ingredients(recipe_id, conn)
        return recipe_from_row(row, ingredients)

    async def get_recipe_name(self, recipe_id: int) -> str | None:
        """Name of a recipe, ``None`` if it does not exist."""
        async with self._pool.acquire() as conn:
            with translate_storage_errors("get_recipe_name", recipe_id=recipe_id):
                return await self._recipes.get_name(recipe_id, conn)

    async def search_recipes(
        self,
        keyword: str | None = None,
        category: str | None = None,
        min_rating: Decimal | float | None = None,
        page: int = 1,
        size: int | None = None,
        sort: str | None = None,
    ) -> Page[RecipeRecord]:
        """Filtered, sorted page of recipes by active authors.

        Raises:
            ValidationError: If the page window is invalid.
        """
        request = PageRequest.of(
            page,
            self._pagination.default_page_size if size is None else size,
            self._pagination.max_page_size,
        )
        filters = RecipeFilter(keyword=keyword, category=category, min_rating=min_rating)
        order = recipe_sort(sort)

        async with self._pool.acquire() as conn:
            with translate_storage_errors("search_recipes"):
                rows, total = await self._recipes.search(filters, order, request, conn)
                ingredients = await self._recipes.ingredients_for(
                    [row["id"] for row in rows], conn
                )

        items = [recipe_from_row(row, ingredients[row["id"]]) for row in rows]
        return request.to_page(items, total)

    async def create_recipe(self, auth: AuthInfo | None, payload: RecipeCreate) -> int:
        """Publish a recipe for the caller and return its id.

        Raises:
            AuthorizationError: If the identity is rejected.
            ValidationError: If the name is blank or a time is not a duration.
        """
        name = (payload.name or "").strip()
        if not name:
            raise ValidationError("name must not be blank", field="name")
        parse_duration(payload.cook_time, "cookTime")
        parse_duration(payload.prep_time, "prepTime")

        values: dict[str, Any] = {
            "name": name,
            "cook_time": payload.cook_time,
            "prep_time": payload.prep_time,
            "total_time": (
                total_time(payload.cook_time, payload.prep_time)
                if payload.cook_time or payload.prep_time
                else None
            ),
            "description": payload.description,
            "category": payload.recipe_category,
            "calories": payload.calories,
            "fat": payload.fat_content,
            "saturated_fat": payload.saturated_fat_content,
            "cholesterol": payload.cholesterol_content,
            "sodium": payload.sodium_content,
            "carbohydrate": payload.carbohydrate_content,
            "fiber": payload.fiber_content,
            "sugar": payload.sugar_content,
            "protein": payload.protein_content,
            "servings": payload.recipe_servings,
            "yield": payload.recipe_yield,
        }
        published = payload.date_published or datetime.now(UTC)
        ingredients = clean_ingredients(payload.recipe_ingredient_parts)

        async with self._pool.acquire() as conn:
            with translate_storage_errors("create_recipe"):
                async with conn.transaction():
                    author_id = await self._guard.authenticate(auth, conn)
                    recipe_id = await self._recipes.create(author_id, values, published, conn)
                    await self._recipes.add_ingredients(recipe_id, ingredients, conn)

        logger.info(
            "Recipe created",
            recipe_id=recipe_id,
            author_id=author_id,
            ingredients=len(ingredients),
        )
        return recipe_id

    async def delete_recipe(self, auth: AuthInfo | None, recipe_id: int) -> None:
        """Delete the caller's recipe with its reviews, likes and ingredients.

        Raises:
            AuthorizationError: If the identity is rejected or the caller is
                not the author.
            NotFoundError: If the recipe does not exist.
        """
        _require_positive_id(recipe_id)
        async with self._pool.acquire() as conn:
            with translate_storage_errors("delete_recipe", recipe_id=recipe_id):
                async with conn.transaction():
                    user_id = await self._guard.authenticate(auth, conn)
                    recipe = await self._recipes.lock(recipe_id, conn)
                    if recipe is None:
                        raise NotFoundError("Recipe", recipe_id)
                    if recipe["author_id"] != user_id:
                        logger.warning(
                            "Recipe deletion denied", recipe_id=recipe_id, author_id=user_id
                        )
                        raise AuthorizationError("Only the author may delete this recipe")
                    await self._recipes.delete(recipe_id, conn)

        logger.info("Recipe deleted", recipe_id=recipe_id, author_id=user_id)

    async def update_times(
        self,
        auth: AuthInfo | None,
        recipe_id: int,
        cook_time: str | None = None,
        prep_time: str | None = None,
    ) -> None:
        """Replace cook and/or prep time and recompute the total.

        A ``None`` argument keeps the stored value; both ``None`` is a no-op
        after authentication.

        Raises:
            AuthorizationError: If the identity is rejected or the caller is
                not the author.
            NotFoundError: If the recipe does not exist.
            ValidationError: If a duration is unparseable or negative.
        """
        _require_positive_id(recipe_id)
        if cook_time is not None:
            parse_duration(cook_time, "cookTime")
        if prep_time is not None:
            parse_duration(prep_time, "prepTime")

        async with self._pool.acquire() as conn:
            with translate_storage_errors("update_times", recipe_id=recipe_id):
                async with conn.transaction():
                    user_id = await self._guard.authenticate(auth, conn)
                    if cook_time is None and prep_time is None:
                        return
                    recipe = await self._recipes.lock(recipe_id, conn)
                    if recipe is None:
                        raise NotFoundError("Recipe", recipe_id)
                    if recipe["author_id"] != user_id:
                        raise AuthorizationError("Only the author may update this recipe")

                    final_cook = cook_time if cook_time is not None else recipe["cook_time"]
                    final_prep = prep_time if prep_time is not None else recipe["prep_time"]
                    total = total_time(final_cook, final_prep)
                    await self._recipes.update_times(
                        recipe_id, final_cook, final_prep, total, conn
                    )

        logger.info("Recipe times updated", recipe_id=recipe_id, total_time=total)

    async def closest_calorie_pair(self) -> CaloriePair | None:
        """Two recipes with the smallest calorie difference, if any."""
        async with self._pool.acquire() as conn:
            with translate_storage_errors("closest_calorie_pair"):
                row = await self._recipes.closest_calorie_pair(conn)
        if row is None:
            return None
        return CaloriePair(
            recipe_a=row["recipe_a"],
            recipe_b=row["recipe_b"],
            calories_a=row["calories_a"],
            calories_b=row["calories_b"],
            difference=row["difference"],
        )

    async def top_recipes_by_ingredients(
        self, limit: int = TOP_COMPLEX_LIMIT
    ) -> list[IngredientComplexity]:
        """Recipes with the most distinct ingredients, ties by id."""
        async with self._pool.acquire() as conn:
            with translate_storage_errors("top_recipes_by_ingredients"):
                rows = await self._recipes.top_by_ingredients(limit, conn)
        return [
            IngredientComplexity(
                recipe_id=row["id"],
                name=row["name"],
                ingredient_count=row["ingredient_count"],
            )
            for row in rows
        ]
