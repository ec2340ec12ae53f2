"""PostgreSQL connection pool management.

This module provides:
- Async connection pool management via asyncpg
- A scope helper that reuses a caller's connection when one is given
- Health check utilities
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import asyncpg

from recipeshare.core.config import get_settings
from recipeshare.observability.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from asyncpg import Connection, Pool

    from recipeshare.core.config import Settings

logger = get_logger(__name__)

# Global connection pool
_pool: Pool | None = None


async def init_database_pool(settings: Settings | None = None) -> Pool:
    """Initialize the PostgreSQL connection pool.

    Every pooled connection uses ``database.db_schema`` as its search path,
    so SQL in the repositories stays schema-agnostic.
    """
    global _pool  # noqa: PLW0603

    settings = settings or get_settings()

    logger.info(
        "Initializing database connection pool",
        host=settings.database.host,
        port=settings.database.port,
        database=settings.database.name,
        schema=settings.database.db_schema,
    )

    _pool = await asyncpg.create_pool(
        host=settings.database.host,
        port=settings.database.port,
        database=settings.database.name,
        user=settings.database.user,
        password=settings.DATABASE_PASSWORD or None,
        min_size=settings.database.min_pool_size,
        max_size=settings.database.max_pool_size,
        command_timeout=settings.database.command_timeout,
        ssl=settings.database.ssl if settings.database.ssl else None,
        server_settings={"search_path": settings.database.db_schema},
    )

    try:
        assert _pool is not None
        async with _pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
        logger.info("Database connection established successfully")
    except asyncpg.PostgresError:
        logger.exception("Failed to connect to database")
        raise

    return _pool


async def close_database_pool() -> None:
    """Close the PostgreSQL connection pool."""
    global _pool  # noqa: PLW0603

    logger.info("Closing database connection pool")

    if _pool:
        await _pool.close()
        _pool = None

    logger.info("Database connection pool closed")


def get_database_pool() -> Pool:
    """Get the database connection pool.

    Raises:
        RuntimeError: If pool is not initialized.
    """
    if _pool is None:
        msg = "Database pool not initialized. Call init_database_pool() first."
        raise RuntimeError(msg)
    return _pool


@asynccontextmanager
async def connection_scope(
    pool: Pool,
    conn: Connection | None = None,
) -> AsyncIterator[Connection]:
    """Yield ``conn`` when given, otherwise a connection borrowed from ``pool``.

    Lets a repository method join the caller's transaction or run on its
    own short-lived connection with the same code path.
    """
    if conn is not None:
        yield conn
        return
    async with pool.acquire() as acquired:
        yield acquired


async def check_database_health(pool: Pool | None = None) -> dict[str, str]:
    """Check health of the database connection."""
    results: dict[str, str] = {}
    pool = pool or _pool

    try:
        if pool:
            async with pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            results["database"] = "healthy"
        else:
            results["database"] = "not_initialized"
    except (asyncpg.PostgresError, OSError):
        logger.warning("Database health check failed")
        results["database"] = "unhealthy"

    return results
