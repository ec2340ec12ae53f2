"""Unit tests for the aggregate maintainer.

Tests cover:
- Rating rounding
- Recompute after review changes
- Follow counts
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from recipeshare.services.aggregates import AggregateMaintainer, round_rating


pytestmark = pytest.mark.unit


@pytest.fixture
def recipes() -> MagicMock:
    recipes = MagicMock()
    recipes.rating_stats = AsyncMock()
    recipes.write_aggregate = AsyncMock()
    recipes.refresh_aggregates = AsyncMock(return_value=2)
    return recipes


@pytest.fixture
def users() -> MagicMock:
    users = MagicMock()
    users.follow_counts = AsyncMock(return_value=(3, 1))
    return users


@pytest.fixture
def maintainer(recipes: MagicMock, users: MagicMock) -> AggregateMaintainer:
    return AggregateMaintainer(recipes, users)


class TestRoundRating:
    """Tests for round_rating."""

    @pytest.mark.parametrize(
        ("mean", "expected"),
        [
            (Decimal("4.333333"), Decimal("4.33")),
            (Decimal("4.665"), Decimal("4.67")),
            (Decimal("4.125"), Decimal("4.13")),
            (Decimal("5"), Decimal("5.00")),
        ],
    )
    def test_half_up(self, mean: Decimal, expected: Decimal):
        """Should round halves away from zero to 2 places."""
        assert round_rating(mean) == expected

    def test_none(self):
        """Should keep None for a recipe without reviews."""
        assert round_rating(None) is None


class TestRecomputeRecipeRating:
    """Tests for recompute_recipe_rating."""

    @pytest.mark.asyncio
    async def test_after_edit(self, maintainer: AggregateMaintainer, recipes: MagicMock):
        """Should write the new mean after a 4 is edited to a 2."""
        conn = MagicMock()
        recipes.rating_stats.return_value = (1, Decimal("2"))

        aggregate = await maintainer.recompute_recipe_rating(conn, 8)

        assert aggregate.aggregated_rating == Decimal("2.00")
        assert aggregate.review_count == 1
        recipes.write_aggregate.assert_awaited_once_with(8, Decimal("2.00"), 1, conn)

    @pytest.mark.asyncio
    async def test_after_last_review_deleted(
        self, maintainer: AggregateMaintainer, recipes: MagicMock
    ):
        """Should clear the rating and zero the count without reviews."""
        conn = MagicMock()
        recipes.rating_stats.return_value = (0, None)

        aggregate = await maintainer.recompute_recipe_rating(conn, 8)

        assert aggregate.aggregated_rating is None
        assert aggregate.review_count == 0
        recipes.write_aggregate.assert_awaited_once_with(8, None, 0, conn)

    @pytest.mark.asyncio
    async def test_mixed_ratings(self, maintainer: AggregateMaintainer, recipes: MagicMock):
        """Should round the mean of 5, 4 and 4."""
        recipes.rating_stats.return_value = (3, Decimal("4.3333333333"))

        aggregate = await maintainer.recompute_recipe_rating(MagicMock(), 1)

        assert aggregate.aggregated_rating == Decimal("4.33")


class TestOtherAggregates:
    """Tests for bulk refresh and follow counts."""

    @pytest.mark.asyncio
    async def test_refresh_recipes(self, maintainer: AggregateMaintainer, recipes: MagicMock):
        """Should delegate to the repository in the caller's transaction."""
        conn = MagicMock()

        assert await maintainer.refresh_recipes(conn, [1, 2]) == 2
        recipes.refresh_aggregates.assert_awaited_once_with([1, 2], conn)

    @pytest.mark.asyncio
    async def test_follow_counts(self, maintainer: AggregateMaintainer, users: MagicMock):
        """Should count from the edge table."""
        assert await maintainer.follow_counts(5) == (3, 1)
        users.follow_counts.assert_awaited_once_with(5, None)
