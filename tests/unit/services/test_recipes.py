"""Unit tests for RecipeService.

Tests cover:
- Recipe detail with active-author check
- Search paging and defaults
- Recipe creation
- Deletion and time updates with authorship checks
- Analytics
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from recipeshare.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from recipeshare.schemas.recipe import RecipeCreate
from recipeshare.schemas.user import AuthInfo
from recipeshare.services.recipes import RecipeService, clean_ingredients


pytestmark = pytest.mark.unit


def recipe_row(recipe_id: int = 1, **overrides) -> dict:
    row = {
        "id": recipe_id,
        "name": f"Recipe {recipe_id}",
        "author_id": 1,
        "author_name": "alice",
        "cook_time": "PT10M",
        "prep_time": "PT5M",
        "total_time": "PT15M",
        "date_published": datetime(2024, 1, 1, tzinfo=UTC),
        "description": None,
        "category": "Dessert",
        "agg_rating": None,
        "review_count": 0,
        "calories": None,
        "fat": None,
        "saturated_fat": None,
        "cholesterol": None,
        "sodium": None,
        "carbohydrate": None,
        "fiber": None,
        "sugar": None,
        "protein": None,
        "servings": None,
        "yield": None,
    }
    row.update(overrides)
    return row


@pytest.fixture
def recipes() -> MagicMock:
    recipes = MagicMock()
    recipes.get_active = AsyncMock(return_value=recipe_row())
    recipes.get_name = AsyncMock(return_value="Recipe 1")
    recipes.ingredients = AsyncMock(return_value=["sugar", "Butter"])
    recipes.ingredients_for = AsyncMock(return_value={})
    recipes.search = AsyncMock(return_value=([], 0))
    recipes.create = AsyncMock(return_value=42)
    recipes.add_ingredients = AsyncMock()
    recipes.lock = AsyncMock(
        return_value={
            "id": 1,
            "author_id": 1,
            "cook_time": "PT1H",
            "prep_time": "PT20M",
            "author_deleted": False,
        }
    )
    recipes.delete = AsyncMock(return_value=True)
    recipes.update_times = AsyncMock()
    recipes.closest_calorie_pair = AsyncMock(return_value=None)
    recipes.top_by_ingredients = AsyncMock(return_value=[])
    return recipes


@pytest.fixture
def service(mock_pool, recipes, guard, pagination) -> RecipeService:
    return RecipeService(mock_pool, recipes, guard, pagination)


class TestCleanIngredients:
    """Tests for clean_ingredients."""

    def test_trims_and_dedupes(self):
        """Should drop blanks and duplicates and keep first-seen order."""
        assert clean_ingredients([" egg ", "", "milk", "egg", None]) == ["egg", "milk"]

    def test_none(self):
        """Should treat None as no ingredients."""
        assert clean_ingredients(None) == []


# =============================================================================
# Reads
# =============================================================================


class TestGetRecipe:
    """Tests for get_recipe and get_recipe_name."""

    @pytest.mark.asyncio
    async def test_returns_sorted_ingredients(self, service: RecipeService):
        """Should return the recipe with ingredients sorted case-insensitively."""
        recipe = await service.get_recipe(1)

        assert recipe.recipe_ingredient_parts == ["Butter", "sugar"]
        assert recipe.aggregated_rating is None

    @pytest.mark.asyncio
    async def test_inactive_author_hidden(self, service: RecipeService, recipes: MagicMock):
        """Should raise NotFoundError when the author is deleted."""
        recipes.get_active.return_value = None

        with pytest.raises(NotFoundError):
            await service.get_recipe(1)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("recipe_id", [0, -1])
    async def test_invalid_id(self, service: RecipeService, recipes: MagicMock, recipe_id: int):
        """Should reject a non-positive id."""
        with pytest.raises(ValidationError):
            await service.get_recipe(recipe_id)

        recipes.get_active.assert_not_called()

    @pytest.mark.asyncio
    async def test_name_lookup(self, service: RecipeService, recipes: MagicMock):
        """Should return None for an unknown recipe."""
        recipes.get_name.return_value = None

        assert await service.get_recipe_name(99) is None


class TestSearchRecipes:
    """Tests for search_recipes."""

    @pytest.mark.asyncio
    async def test_default_page_size(self, service: RecipeService, recipes: MagicMock):
        """Should use the configured default size."""
        page = await service.search_recipes()

        assert (page.page, page.size, page.total) == (1, 20, 0)

    @pytest.mark.asyncio
    async def test_attaches_ingredients(self, service: RecipeService, recipes: MagicMock):
        """Should fetch ingredients for the page in one call."""
        recipes.search.return_value = ([recipe_row(3), recipe_row(4)], 2)
        recipes.ingredients_for.return_value = {3: ["b", "A"], 4: []}

        page = await service.search_recipes(keyword="cake", min_rating=4.5, sort="rating_desc")

        assert [r.recipe_id for r in page.items] == [3, 4]
        assert page.items[0].recipe_ingredient_parts == ["A", "b"]
        recipes.ingredients_for.assert_awaited_once()
        filters, order, request, _ = recipes.search.call_args.args
        assert filters.args == ["%cake%", Decimal("4.5")]
        assert order.terms[0].column == "r.agg_rating"
        assert request.size == 20

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("page", "size"), [(0, 10), (1, 0)])
    async def test_invalid_window(self, service: RecipeService, page: int, size: int):
        """Should reject an invalid page window."""
        with pytest.raises(ValidationError):
            await service.search_recipes(page=page, size=size)

    @pytest.mark.asyncio
    async def test_clamps_size(self, service: RecipeService):
        """Should clamp oversized pages."""
        page = await service.search_recipes(size=10_000)

        assert page.size == 200


# =============================================================================
# Mutations
# =============================================================================


class TestCreateRecipe:
    """Tests for create_recipe."""

    @pytest.mark.asyncio
    async def test_creates(
        self, service: RecipeService, recipes: MagicMock, auth: AuthInfo, mock_conn
    ):
        """Should insert the recipe and its cleaned ingredients in one transaction."""
        payload = RecipeCreate(
            name=" Brownies ",
            cook_time="PT30M",
            prep_time="PT15M",
            recipe_ingredient_parts=["cocoa", "cocoa", " flour "],
        )

        assert await service.create_recipe(auth, payload) == 42

        author_id, values, published, _ = recipes.create.call_args.args
        assert author_id == 1
        assert values["name"] == "Brownies"
        assert values["total_time"] == "PT45M"
        assert published.tzinfo is not None
        recipes.add_ingredients.assert_awaited_once_with(42, ["cocoa", "flour"], mock_conn)
        assert mock_conn.tx.committed == 1

    @pytest.mark.asyncio
    async def test_rejects_blank_name(self, service: RecipeService, auth: AuthInfo):
        """Should require a name."""
        with pytest.raises(ValidationError):
            await service.create_recipe(auth, RecipeCreate(name=" "))

    @pytest.mark.asyncio
    async def test_rejects_bad_duration(self, service: RecipeService, auth: AuthInfo):
        """Should reject an unparseable cook time."""
        with pytest.raises(ValidationError):
            await service.create_recipe(auth, RecipeCreate(name="Soup", cook_time="soon"))

    @pytest.mark.asyncio
    async def test_rejected_identity(
        self, service: RecipeService, recipes: MagicMock, guard: MagicMock, auth: AuthInfo
    ):
        """Should not insert anything for a rejected caller."""
        guard.authenticate.side_effect = AuthorizationError("Invalid credentials")

        with pytest.raises(AuthorizationError):
            await service.create_recipe(auth, RecipeCreate(name="Soup"))

        recipes.create.assert_not_called()


class TestDeleteRecipe:
    """Tests for delete_recipe."""

    @pytest.mark.asyncio
    async def test_author_deletes(self, service: RecipeService, recipes: MagicMock, auth):
        """Should delete the author's recipe."""
        await service.delete_recipe(auth, 1)

        recipes.delete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_non_author(self, service: RecipeService, recipes: MagicMock, auth):
        """Should refuse deletion by another user."""
        recipes.lock.return_value = {"id": 1, "author_id": 2}

        with pytest.raises(AuthorizationError):
            await service.delete_recipe(auth, 1)

        recipes.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing(self, service: RecipeService, recipes: MagicMock, auth):
        """Should raise NotFoundError for an unknown recipe."""
        recipes.lock.return_value = None

        with pytest.raises(NotFoundError):
            await service.delete_recipe(auth, 1)


class TestUpdateTimes:
    """Tests for update_times."""

    @pytest.mark.asyncio
    async def test_updates_one_side(self, service: RecipeService, recipes: MagicMock, auth):
        """Should keep the stored prep time and recompute the total."""
        await service.update_times(auth, 1, cook_time="PT2H")

        recipes.update_times.assert_awaited_once()
        assert recipes.update_times.call_args.args[:4] == (1, "PT2H", "PT20M", "PT2H20M")

    @pytest.mark.asyncio
    async def test_noop(self, service: RecipeService, recipes: MagicMock, auth):
        """Should change nothing when both times are None."""
        await service.update_times(auth, 1)

        recipes.lock.assert_not_called()
        recipes.update_times.assert_not_called()

    @pytest.mark.asyncio
    async def test_negative_duration(self, service: RecipeService, recipes: MagicMock, auth):
        """Should reject a negative duration before any write."""
        with pytest.raises(ValidationError):
            await service.update_times(auth, 1, prep_time="-PT5M")

        recipes.update_times.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_author(self, service: RecipeService, recipes: MagicMock, auth):
        """Should refuse updates by another user."""
        recipes.lock.return_value = {"id": 1, "author_id": 2, "cook_time": None, "prep_time": None}

        with pytest.raises(AuthorizationError):
            await service.update_times(auth, 1, cook_time="PT1M")


# =============================================================================
# Analytics
# =============================================================================


class TestAnalytics:
    """Tests for closest_calorie_pair and top_recipes_by_ingredients."""

    @pytest.mark.asyncio
    async def test_no_pair(self, service: RecipeService):
        """Should return None with fewer than two recipes."""
        assert await service.closest_calorie_pair() is None

    @pytest.mark.asyncio
    async def test_pair(self, service: RecipeService, recipes: MagicMock):
        """Should map the pair row."""
        recipes.closest_calorie_pair.return_value = {
            "recipe_a": 2,
            "recipe_b": 5,
            "calories_a": Decimal("300.00"),
            "calories_b": Decimal("301.50"),
            "difference": Decimal("1.50"),
        }

        pair = await service.closest_calorie_pair()

        assert (pair.recipe_a, pair.recipe_b) == (2, 5)
        assert pair.model_dump(mode="json")["difference"] == 1.5

    @pytest.mark.asyncio
    async def test_top_by_ingredients(self, service: RecipeService, recipes: MagicMock):
        """Should ask for three recipes by default."""
        recipes.top_by_ingredients.return_value = [
            {"id": 9, "name": "Paella", "ingredient_count": 14},
        ]

        result = await service.top_recipes_by_ingredients()

        assert result[0].ingredient_count == 14
        assert recipes.top_by_ingredients.call_args.args[0] == 3
