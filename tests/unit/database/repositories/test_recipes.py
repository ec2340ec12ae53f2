"""Unit tests for RecipeRepository and RecipeFilter.

Tests cover:
- Filter clause and argument building
- Search and feed SQL shape
- Batched ingredient lookups
- Aggregate writes
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from recipeshare.database.repositories.recipes import RecipeFilter, RecipeRepository
from recipeshare.services.pagination import PageRequest, recipe_sort


if TYPE_CHECKING:
    from unittest.mock import MagicMock


pytestmark = pytest.mark.unit


@pytest.fixture
def repository(mock_pool: MagicMock) -> RecipeRepository:
    return RecipeRepository(mock_pool)


# =============================================================================
# RecipeFilter
# =============================================================================


class TestRecipeFilter:
    """Tests for RecipeFilter."""

    def test_empty(self):
        """Should produce no WHERE clause without filters."""
        filters = RecipeFilter()

        assert filters.where() == ""
        assert filters.args == []

    def test_keyword_escapes_wildcards(self):
        """Should match the keyword literally on name or description."""
        filters = RecipeFilter(keyword=" 100%_real ")

        assert filters.args == ["%100\\%\\_real%"]
        assert "r.name ILIKE $1" in filters.where()
        assert "r.description ILIKE $1" in filters.where()

    def test_blank_keyword_ignored(self):
        """Should ignore a blank keyword."""
        assert RecipeFilter(keyword="   ").clauses == []

    def test_all_filters_numbered(self):
        """Should number placeholders in order."""
        filters = RecipeFilter(keyword="cake", category="Dessert", min_rating=4.5)

        assert filters.args == ["%cake%", "Dessert", Decimal("4.5")]
        assert "r.category = $2" in filters.where()
        assert "r.agg_rating >= $3" in filters.where()


# =============================================================================
# Queries
# =============================================================================


class TestSearch:
    """Tests for search."""

    @pytest.mark.asyncio
    async def test_search_sql(self, repository: RecipeRepository, mock_conn: MagicMock):
        """Should filter active authors, order and page the rows."""
        mock_conn.fetchval.return_value = 12
        mock_conn.fetch.return_value = [{"id": 1}]
        filters = RecipeFilter(category="Dessert")

        rows, total = await repository.search(
            filters, recipe_sort("rating_desc"), PageRequest(page=2, size=5)
        )

        assert total == 12
        assert rows == [{"id": 1}]
        sql, *args = mock_conn.fetch.call_args.args
        assert "u.is_deleted = FALSE" in sql
        assert "ORDER BY r.agg_rating DESC NULLS LAST, r.id DESC" in sql
        assert "LIMIT $2 OFFSET $3" in sql
        assert args == ["Dessert", 5, 5]

    @pytest.mark.asyncio
    async def test_feed_sql(self, repository: RecipeRepository, mock_conn: MagicMock):
        """Should restrict to the given authors, newest first."""
        mock_conn.fetchval.return_value = 0

        await repository.feed([3, 4], "Soup", PageRequest(page=1, size=10))

        sql, *args = mock_conn.fetch.call_args.args
        assert "r.author_id = ANY($1::bigint[])" in sql
        assert "ORDER BY r.date_published DESC NULLS LAST, r.id DESC" in sql
        assert args == [[3, 4], "Soup", 10, 0]


class TestIngredients:
    """Tests for ingredient lookups."""

    @pytest.mark.asyncio
    async def test_ingredients_for_groups_by_recipe(
        self, repository: RecipeRepository, mock_conn: MagicMock
    ):
        """Should key ingredients by recipe and keep empty lists."""
        mock_conn.fetch.return_value = [
            {"recipe_id": 1, "ingredient": "salt"},
            {"recipe_id": 1, "ingredient": "egg"},
        ]

        result = await repository.ingredients_for([1, 2])

        assert result == {1: ["salt", "egg"], 2: []}

    @pytest.mark.asyncio
    async def test_ingredients_for_empty(
        self, repository: RecipeRepository, mock_conn: MagicMock
    ):
        """Should not query for an empty id list."""
        assert await repository.ingredients_for([]) == {}
        mock_conn.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_add_ingredients(self, repository: RecipeRepository, mock_conn: MagicMock):
        """Should insert one row per ingredient."""
        await repository.add_ingredients(9, ["egg", "milk"], mock_conn)

        assert mock_conn.executemany.call_args.args[1] == [(9, "egg"), (9, "milk")]


class TestAggregates:
    """Tests for rating statistics and aggregate writes."""

    @pytest.mark.asyncio
    async def test_rating_stats(self, repository: RecipeRepository, mock_conn: MagicMock):
        """Should return the count and unrounded mean."""
        mock_conn.fetchrow.return_value = {"review_count": 3, "mean": Decimal("4.3333")}

        assert await repository.rating_stats(1, mock_conn) == (3, Decimal("4.3333"))

    @pytest.mark.asyncio
    async def test_refresh_aggregates(self, repository: RecipeRepository, mock_conn: MagicMock):
        """Should refresh many recipes in one statement."""
        mock_conn.execute.return_value = "UPDATE 2"

        assert await repository.refresh_aggregates([1, 2], mock_conn) == 2
        assert "ROUND(AVG(v.rating::numeric), 2)" in mock_conn.execute.call_args.args[0]

    @pytest.mark.asyncio
    async def test_refresh_nothing(self, repository: RecipeRepository, mock_conn: MagicMock):
        """Should skip the statement without ids."""
        assert await repository.refresh_aggregates([], mock_conn) == 0
        mock_conn.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_cascades(self, repository: RecipeRepository, mock_conn: MagicMock):
        """Should delete likes, reviews and ingredients before the recipe."""
        mock_conn.execute.return_value = "DELETE 1"

        assert await repository.delete(5, mock_conn) is True
        statements = [call.args[0] for call in mock_conn.execute.call_args_list]
        assert "review_likes" in statements[0]
        assert statements[-1] == "DELETE FROM recipes WHERE id = $1"
