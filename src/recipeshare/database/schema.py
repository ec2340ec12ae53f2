"""Relational schema management.

Every statement here is idempotent (``IF NOT EXISTS``) except ``drop_all``,
which exists for test resets only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from recipeshare.database.connection import connection_scope
from recipeshare.observability.logging import get_logger


if TYPE_CHECKING:
    from asyncpg import Connection, Pool

logger = get_logger(__name__)


# Serializes concurrent ensure_schema calls from several workers.
SCHEMA_LOCK_KEY = "recipeshare.schema"

TABLE_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id              BIGINT PRIMARY KEY,
        name            VARCHAR(255) NOT NULL UNIQUE,
        gender          VARCHAR(10) CHECK (gender IN ('Male', 'Female', 'Unknown')),
        age             INTEGER CHECK (age > 0),
        follower_count  INTEGER NOT NULL DEFAULT 0 CHECK (follower_count >= 0),
        following_count INTEGER NOT NULL DEFAULT 0 CHECK (following_count >= 0),
        credential      VARCHAR(255),
        is_deleted      BOOLEAN NOT NULL DEFAULT FALSE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS recipes (
        id              BIGINT PRIMARY KEY,
        name            VARCHAR(500) NOT NULL,
        author_id       BIGINT NOT NULL REFERENCES users (id),
        cook_time       VARCHAR(50),
        prep_time       VARCHAR(50),
        total_time      VARCHAR(50),
        date_published  TIMESTAMPTZ,
        description     TEXT,
        category        VARCHAR(255),
        agg_rating      NUMERIC(3, 2) CHECK (agg_rating >= 0 AND agg_rating <= 5),
        review_count    INTEGER NOT NULL DEFAULT 0 CHECK (review_count >= 0),
        calories        NUMERIC(10, 2),
        fat             NUMERIC(10, 2),
        saturated_fat   NUMERIC(10, 2),
        cholesterol     NUMERIC(10, 2),
        sodium          NUMERIC(10, 2),
        carbohydrate    NUMERIC(10, 2),
        fiber           NUMERIC(10, 2),
        sugar           NUMERIC(10, 2),
        protein         NUMERIC(10, 2),
        servings        VARCHAR(100),
        yield           VARCHAR(100)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS recipe_ingredients (
        recipe_id       BIGINT NOT NULL REFERENCES recipes (id),
        ingredient      TEXT NOT NULL,
        PRIMARY KEY (recipe_id, ingredient)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS reviews (
        id              BIGINT PRIMARY KEY,
        recipe_id       BIGINT NOT NULL REFERENCES recipes (id),
        author_id       BIGINT NOT NULL REFERENCES users (id),
        rating          INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
        body            TEXT,
        submitted_at    TIMESTAMPTZ,
        modified_at     TIMESTAMPTZ,
        CONSTRAINT uq_reviews_recipe_author UNIQUE (recipe_id, author_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS review_likes (
        review_id       BIGINT NOT NULL REFERENCES reviews (id),
        author_id       BIGINT NOT NULL REFERENCES users (id),
        PRIMARY KEY (review_id, author_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_follows (
        follower_id     BIGINT NOT NULL REFERENCES users (id),
        following_id    BIGINT NOT NULL REFERENCES users (id),
        PRIMARY KEY (follower_id, following_id),
        CONSTRAINT ck_user_follows_not_self CHECK (follower_id <> following_id)
    )
    """,
)

# Table name -> sequence issuing ids for rows created through the API.
ID_SEQUENCES: dict[str, str] = {
    "users": "users_id_seq",
    "recipes": "recipes_id_seq",
    "reviews": "reviews_id_seq",
}

INDEX_STATEMENTS: tuple[str, ...] = (
    "CREATE INDEX IF NOT EXISTS idx_recipes_author ON recipes (author_id)",
    "CREATE INDEX IF NOT EXISTS idx_reviews_recipe ON reviews (recipe_id)",
    "CREATE INDEX IF NOT EXISTS idx_reviews_author ON reviews (author_id)",
    "CREATE INDEX IF NOT EXISTS idx_review_likes_review ON review_likes (review_id)",
    "CREATE INDEX IF NOT EXISTS idx_review_likes_author ON review_likes (author_id)",
    "CREATE INDEX IF NOT EXISTS idx_user_follows_follower ON user_follows (follower_id)",
    "CREATE INDEX IF NOT EXISTS idx_user_follows_following ON user_follows (following_id)",
    "CREATE INDEX IF NOT EXISTS idx_recipes_date_published ON recipes (date_published DESC, id DESC)",
    "CREATE INDEX IF NOT EXISTS idx_recipes_category ON recipes (category)",
)

TABLE_NAMES: tuple[str, ...] = (
    "user_follows",
    "review_likes",
    "reviews",
    "recipe_ingredients",
    "recipes",
    "users",
)


class SchemaManager:
    """Creates, indexes and (for tests) drops the relational schema."""

    def __init__(self, pool: Pool) -> None:
        self._pool = pool

    async def ensure_schema(self, conn: Connection | None = None) -> None:
        """Create every table, constraint, sequence and index that is missing.

        Safe to call on every startup; never touches existing rows. Errors
        propagate: the process cannot run without a usable schema.
        """
        async with connection_scope(self._pool, conn) as c, c.transaction():
            await c.execute("SELECT pg_advisory_xact_lock(hashtext($1))", SCHEMA_LOCK_KEY)
            for statement in TABLE_STATEMENTS:
                await c.execute(statement)
            for sequence in ID_SEQUENCES.values():
                await c.execute(f"CREATE SEQUENCE IF NOT EXISTS {sequence}")
            await self.create_indexes(c)
            await self.sync_sequences(c)

        logger.info(
            "Schema ensured",
            tables=len(TABLE_STATEMENTS),
            indexes=len(INDEX_STATEMENTS),
        )

    async def create_indexes(self, conn: Connection) -> None:
        """Create the foreign-key join and feed/search indexes if missing."""
        for statement in INDEX_STATEMENTS:
            await conn.execute(statement)

    async def sync_sequences(self, conn: Connection) -> None:
        """Move each id sequence past the largest id present in its table.

        An empty table resets its sequence so the next id issued is 1.
        """
        for table, sequence in ID_SEQUENCES.items():
            await conn.execute(
                f"""
                SELECT setval(
                    '{sequence}',
                    GREATEST(COALESCE((SELECT MAX(id) FROM {table}), 0), 1),
                    EXISTS (SELECT 1 FROM {table})
                )
                """
            )

    async def drop_all(self) -> None:
        """Drop every table and id sequence this schema defines.

        Destructive; meant for test and reset flows only.
        """
        async with self._pool.acquire() as conn, conn.transaction():
            await conn.execute(f"DROP TABLE IF EXISTS {', '.join(TABLE_NAMES)} CASCADE")
            for sequence in ID_SEQUENCES.values():
                await conn.execute(f"DROP SEQUENCE IF EXISTS {sequence}")

        logger.warning("All tables dropped")
