"""Integration test fixtures.

Runs the services against a real PostgreSQL started with testcontainers.
The whole module is skipped when Docker is not reachable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from docker.errors import DockerException
from fastapi import FastAPI
from testcontainers.postgres import PostgresContainer

import recipeshare.database.connection as db_module
from recipeshare.core.config import Settings
from recipeshare.core.events import build_services
from recipeshare.database.connection import close_database_pool, init_database_pool
from recipeshare.database.schema import SchemaManager


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Generator

    from asyncpg import Pool
    from starlette.datastructures import State



@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer]:
    """Start a PostgreSQL container for the test session."""
    try:
        postgres = PostgresContainer("postgres:16-alpine").start()
    except DockerException as exc:
        pytest.skip(f"Docker is not available: {exc}")
    yield postgres
    postgres.stop()


@pytest.fixture(scope="session")
def settings(postgres_container: PostgresContainer) -> Settings:
    """Settings pointing at the container, with a tiny import batch."""
    return Settings(
        database={
            "host": postgres_container.get_container_host_ip(),
            "port": int(postgres_container.get_exposed_port(5432)),
            "name": postgres_container.dbname,
            "user": postgres_container.username,
            "db_schema": "public",
            "min_pool_size": 1,
            "max_pool_size": 4,
            "ssl": False,
        },
        DATABASE_PASSWORD=postgres_container.password,
        importing={"batch_size": 2},
        pagination={"default_page_size": 20, "max_page_size": 200},
    )


@pytest.fixture
async def pool(settings: Settings) -> AsyncGenerator[Pool]:
    """Pool over an empty, freshly created schema."""
    db_module._pool = None
    pool = await init_database_pool(settings)
    schema = SchemaManager(pool)
    await schema.drop_all()
    await schema.ensure_schema()
    yield pool
    await close_database_pool()


@pytest.fixture
def services(pool: Pool, settings: Settings) -> State:
    """Services wired the way application startup wires them."""
    app = FastAPI()
    build_services(app, pool, settings)
    return app.state
