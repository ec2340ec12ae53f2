"""Unit tests for ReviewRepository.

Tests cover:
- Duplicate review detection
- Liker grouping
- Review listing SQL
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from recipeshare.database.repositories.reviews import ReviewRepository
from recipeshare.services.pagination import PageRequest, review_sort


if TYPE_CHECKING:
    from unittest.mock import MagicMock


pytestmark = pytest.mark.unit


@pytest.fixture
def repository(mock_pool: MagicMock) -> ReviewRepository:
    return ReviewRepository(mock_pool)


class TestReviewRepository:
    """Tests for ReviewRepository."""

    @pytest.mark.asyncio
    async def test_create_returns_id(self, repository: ReviewRepository, mock_conn: MagicMock):
        """Should return the new review id."""
        mock_conn.fetchval.return_value = 11

        assert await repository.create(1, 2, 5, "Great", mock_conn) == 11
        sql = mock_conn.fetchval.call_args.args[0]
        assert "ON CONFLICT (recipe_id, author_id) DO NOTHING" in sql

    @pytest.mark.asyncio
    async def test_create_duplicate(self, repository: ReviewRepository, mock_conn: MagicMock):
        """Should return None when the author already reviewed the recipe."""
        mock_conn.fetchval.return_value = None

        assert await repository.create(1, 2, 5, None, mock_conn) is None

    @pytest.mark.asyncio
    async def test_delete_removes_likes_first(
        self, repository: ReviewRepository, mock_conn: MagicMock
    ):
        """Should delete like edges before the review."""
        mock_conn.execute.side_effect = ["DELETE 2", "DELETE 1"]

        assert await repository.delete(3, mock_conn) is True
        assert "review_likes" in mock_conn.execute.call_args_list[0].args[0]

    @pytest.mark.asyncio
    async def test_likers_for(self, repository: ReviewRepository, mock_conn: MagicMock):
        """Should group liker ids by review."""
        mock_conn.fetch.return_value = [
            {"review_id": 1, "author_id": 4},
            {"review_id": 1, "author_id": 6},
        ]

        assert await repository.likers_for([1, 2]) == {1: [4, 6], 2: []}

    @pytest.mark.asyncio
    async def test_list_for_recipe(self, repository: ReviewRepository, mock_conn: MagicMock):
        """Should page active authors' reviews in the requested order."""
        mock_conn.fetchval.return_value = 1
        mock_conn.fetch.return_value = [{"id": 1}]

        rows, total = await repository.list_for_recipe(
            7, review_sort("likes_desc"), PageRequest(page=3, size=10)
        )

        assert (rows, total) == ([{"id": 1}], 1)
        sql, *args = mock_conn.fetch.call_args.args
        assert "u.is_deleted = FALSE" in sql
        assert "ORDER BY like_count DESC, v.id DESC" in sql
        assert args == [7, 10, 20]
