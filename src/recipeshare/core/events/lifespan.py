"""Application lifespan event handlers.

Startup: logging, connection pool, schema, then every service wired by
constructor injection and stored on ``app.state``. Shutdown closes the pool.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from recipeshare.core.config import Settings, get_settings
from recipeshare.database.connection import close_database_pool, init_database_pool
from recipeshare.database.repositories import (
    ImportRepository,
    RecipeRepository,
    ReviewRepository,
    UserRepository,
)
from recipeshare.database.schema import SchemaManager
from recipeshare.observability.logging import get_logger, setup_logging
from recipeshare.services.admin import AdminService
from recipeshare.services.aggregates import AggregateMaintainer
from recipeshare.services.identity import IdentityGuard
from recipeshare.services.importing import BulkImportService
from recipeshare.services.recipes import RecipeService
from recipeshare.services.reviews import ReviewService
from recipeshare.services.users import UserService


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from asyncpg import Pool
    from fastapi import FastAPI

logger = get_logger(__name__)


def build_services(app: FastAPI, pool: Pool, settings: Settings) -> None:
    """Wire repositories and services and attach them to ``app.state``."""
    users = UserRepository(pool)
    recipes = RecipeRepository(pool)
    reviews = ReviewRepository(pool)
    schema = SchemaManager(pool)

    guard = IdentityGuard(users)
    aggregates = AggregateMaintainer(recipes, users)
    recipe_service = RecipeService(pool, recipes, guard, settings.pagination)
    importer = BulkImportService(
        pool, schema, ImportRepository(pool), aggregates, settings.importing
    )

    app.state.user_service = UserService(
        pool, users, recipes, guard, aggregates, settings.pagination
    )
    app.state.recipe_service = recipe_service
    app.state.review_service = ReviewService(
        pool, reviews, recipes, recipe_service, guard, aggregates, settings.pagination
    )
    app.state.admin_service = AdminService(pool, schema, importer)


async def _startup(app: FastAPI, settings: Settings) -> None:
    setup_logging(
        log_level=settings.logging.level,
        log_format=settings.logging.format,
        is_development=settings.is_development,
    )
    logger.info(
        "Starting application",
        app_name=settings.app.name,
        environment=settings.APP_ENV,
        debug=settings.app.debug,
    )

    pool = await init_database_pool(settings)

    try:
        await SchemaManager(pool).ensure_schema()
    except Exception:
        logger.exception("Schema initialization failed")
        await close_database_pool()
        raise

    build_services(app, pool, settings)
    logger.info("Application startup complete")


async def _shutdown(app: FastAPI) -> None:
    logger.info("Shutting down application")
    for name in ("user_service", "recipe_service", "review_service", "admin_service"):
        setattr(app.state, name, None)
    await close_database_pool()
    logger.info("Application shutdown complete")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan events."""
    settings = getattr(app.state, "settings", None) or get_settings()
    await _startup(app, settings)
    try:
        yield
    finally:
        await _shutdown(app)
