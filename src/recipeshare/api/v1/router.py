"""API v1 router aggregating all endpoint routers.

Mounted under ``api.v1_prefix`` (``/api/v1`` by default). The admin
routes are only included when ``admin.enabled`` is set.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from recipeshare.api.v1.endpoints import admin, health, recipes, reviews, users


if TYPE_CHECKING:
    from recipeshare.core.config import Settings


def build_router(settings: Settings) -> APIRouter:
    """Router with every public endpoint, plus admin when enabled."""
    router = APIRouter()

    router.include_router(health.router)
    router.include_router(users.router)
    router.include_router(recipes.router)
    router.include_router(reviews.router)
    if settings.admin.enabled:
        router.include_router(admin.router)

    return router
