"""Unit tests for the recipe routes."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from recipeshare.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from recipeshare.schemas.pagination import Page
from recipeshare.schemas.recipe import CaloriePair, IngredientComplexity, RecipeRecord


if TYPE_CHECKING:
    from unittest.mock import MagicMock

    from fastapi.testclient import TestClient


pytestmark = pytest.mark.unit

PREFIX = "/api/v1/recipes"


def record(recipe_id: int, rating: str | None = None) -> RecipeRecord:
    return RecipeRecord(
        recipe_id=recipe_id,
        name=f"Recipe {recipe_id}",
        author_id=1,
        aggregated_rating=Decimal(rating) if rating else None,
        recipe_ingredient_parts=["Butter", "sugar"],
    )


class TestReadRoutes:
    """Tests for detail, name and search."""

    def test_get_recipe(self, client: TestClient, recipe_service: MagicMock):
        """Should return the recipe with a null rating when unrated."""
        recipe_service.get_recipe.return_value = record(1)

        response = client.get(f"{PREFIX}/1")

        assert response.status_code == 200
        body = response.json()
        assert body["recipeId"] == 1
        assert body["aggregatedRating"] is None
        assert body["recipeIngredientParts"] == ["Butter", "sugar"]

    def test_get_recipe_not_found(self, client: TestClient, recipe_service: MagicMock):
        """Should answer 404 for a hidden recipe."""
        recipe_service.get_recipe.side_effect = NotFoundError("Recipe", 1)

        assert client.get(f"{PREFIX}/1").status_code == 404

    def test_get_recipe_invalid_id(self, client: TestClient, recipe_service: MagicMock):
        """Should answer 400 for a non-positive id."""
        recipe_service.get_recipe.side_effect = ValidationError("recipe id must be > 0")

        assert client.get(f"{PREFIX}/0").status_code == 400

    def test_get_recipe_name(self, client: TestClient, recipe_service: MagicMock):
        """Should return null for an unknown id."""
        recipe_service.get_recipe_name.return_value = None

        assert client.get(f"{PREFIX}/5/name").json() == {"recipeId": 5, "name": None}

    def test_search(self, client: TestClient, recipe_service: MagicMock):
        """Should pass every filter through and return the page."""
        recipe_service.search_recipes.return_value = Page(
            items=[record(3, "5.00"), record(4, "4.50"), record(1, "4.50")],
            page=1,
            size=10,
            total=3,
        )

        response = client.get(
            f"{PREFIX}/search",
            params={"keyword": "cake", "minRating": "4.5", "sort": "rating_desc", "size": 10},
        )

        assert response.status_code == 200
        body = response.json()
        assert [item["recipeId"] for item in body["items"]] == [3, 4, 1]
        assert body["items"][0]["aggregatedRating"] == 5.0
        kwargs = recipe_service.search_recipes.call_args.kwargs
        assert kwargs["min_rating"] == Decimal("4.5")
        assert kwargs["sort"] == "rating_desc"
        assert kwargs["size"] == 10

    def test_search_invalid_page(self, client: TestClient, recipe_service: MagicMock):
        """Should answer 400 when the service rejects the window."""
        recipe_service.search_recipes.side_effect = ValidationError("page must be >= 1", "page")

        response = client.get(f"{PREFIX}/search", params={"page": 0})

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "page"


class TestWriteRoutes:
    """Tests for create, delete and time updates."""

    def test_create(
        self, client: TestClient, recipe_service: MagicMock, auth_headers: dict[str, str]
    ):
        """Should return 201 with the new id."""
        recipe_service.create_recipe.return_value = 42

        response = client.post(
            PREFIX,
            json={"name": "Brownies", "cookTime": "PT30M", "recipeIngredientParts": ["cocoa"]},
            headers=auth_headers,
        )

        assert response.status_code == 201
        assert response.json() == {"recipeId": 42}
        payload = recipe_service.create_recipe.call_args.args[1]
        assert payload.cook_time == "PT30M"

    def test_delete_by_non_author(
        self, client: TestClient, recipe_service: MagicMock, auth_headers: dict[str, str]
    ):
        """Should answer 403 when the caller is not the author."""
        recipe_service.delete_recipe.side_effect = AuthorizationError("Only the author")

        response = client.delete(f"{PREFIX}/1", headers=auth_headers)

        assert response.status_code == 403

    def test_update_times(
        self, client: TestClient, recipe_service: MagicMock, auth_headers: dict[str, str]
    ):
        """Should pass both durations through."""
        response = client.patch(
            f"{PREFIX}/1/times", json={"prepTime": "PT10M"}, headers=auth_headers
        )

        assert response.status_code == 204
        assert recipe_service.update_times.call_args.kwargs == {
            "cook_time": None,
            "prep_time": "PT10M",
        }


class TestAnalyticsRoutes:
    """Tests for the analytics routes."""

    def test_closest_calorie_pair(self, client: TestClient, recipe_service: MagicMock):
        """Should return the pair with numeric calories."""
        recipe_service.closest_calorie_pair.return_value = CaloriePair(
            recipe_a=1,
            recipe_b=2,
            calories_a=Decimal("100"),
            calories_b=Decimal("100.5"),
            difference=Decimal("0.5"),
        )

        response = client.get(f"{PREFIX}/analytics/closest-calorie-pair")

        assert response.json() == {
            "recipeA": 1,
            "recipeB": 2,
            "caloriesA": 100.0,
            "caloriesB": 100.5,
            "difference": 0.5,
        }

    def test_top_by_ingredients(self, client: TestClient, recipe_service: MagicMock):
        """Should return the ranked list."""
        recipe_service.top_recipes_by_ingredients.return_value = [
            IngredientComplexity(recipe_id=9, name="Paella", ingredient_count=14)
        ]

        response = client.get(f"{PREFIX}/analytics/top3-complex-by-ingredients")

        assert response.json() == [{"recipeId": 9, "name": "Paella", "ingredientCount": 14}]
