"""Fixtures for route tests.

The application is built without running its lifespan; services on
``app.state`` are mocks.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from recipeshare.core.config import Settings
from recipeshare.factory import create_app


def service_mock(*methods: str) -> MagicMock:
    service = MagicMock()
    for method in methods:
        setattr(service, method, AsyncMock())
    return service


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"X-Author-Id": "1", "X-Author-Password": "secret"}


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    monkeypatch.setenv("APP_ENV", "test")
    return Settings()


@pytest.fixture
def user_service() -> MagicMock:
    return service_mock(
        "register",
        "login",
        "get_user",
        "update_profile",
        "delete_account",
        "follow",
        "follow_counts",
        "feed",
        "highest_follow_ratio",
    )


@pytest.fixture
def recipe_service() -> MagicMock:
    return service_mock(
        "get_recipe",
        "get_recipe_name",
        "search_recipes",
        "create_recipe",
        "delete_recipe",
        "update_times",
        "closest_calorie_pair",
        "top_recipes_by_ingredients",
    )


@pytest.fixture
def review_service() -> MagicMock:
    return service_mock(
        "add_review",
        "edit_review",
        "delete_review",
        "like_review",
        "unlike_review",
        "list_reviews",
        "refresh_recipe_aggregated_rating",
    )


@pytest.fixture
def admin_service() -> MagicMock:
    return service_mock("import_data", "drop_all", "health")


@pytest.fixture
def app(settings, user_service, recipe_service, review_service, admin_service):
    app = create_app(settings)
    app.state.user_service = user_service
    app.state.recipe_service = recipe_service
    app.state.review_service = review_service
    app.state.admin_service = admin_service
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)
