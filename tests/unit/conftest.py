"""Unit test fixtures.

Unit tests are fast and isolated: asyncpg pools and connections are mocks,
so no database is needed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

import pytest

import recipeshare.database.connection as db_module
from recipeshare.core.config import PaginationSettings
from recipeshare.schemas.user import AuthInfo


if TYPE_CHECKING:
    from collections.abc import Generator

pytestmark = pytest.mark.unit


class FakeTransaction:
    """Async context manager standing in for ``conn.transaction()``."""

    def __init__(self) -> None:
        self.entered = 0
        self.committed = 0
        self.rolled_back = 0

    async def __aenter__(self) -> FakeTransaction:
        self.entered += 1
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> bool:
        if exc_type is None:
            self.committed += 1
        else:
            self.rolled_back += 1
        return False


@pytest.fixture(autouse=True)
def reset_database_globals() -> Generator[None]:
    """Reset database global state before and after each test."""
    db_module._pool = None
    yield
    db_module._pool = None


@pytest.fixture
def mock_conn() -> MagicMock:
    """Mock asyncpg connection with a working ``transaction()``."""
    conn = MagicMock()
    conn.fetchval = AsyncMock(return_value=None)
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetch = AsyncMock(return_value=[])
    conn.execute = AsyncMock(return_value="UPDATE 1")
    conn.executemany = AsyncMock(return_value=None)
    conn.tx = FakeTransaction()
    conn.transaction = MagicMock(return_value=conn.tx)
    return conn


@pytest.fixture
def mock_pool(mock_conn: MagicMock) -> MagicMock:
    """Mock asyncpg pool whose ``acquire()`` yields ``mock_conn``."""
    pool = MagicMock()
    pool.close = AsyncMock()

    pool.acquire = MagicMock(return_value=AsyncMock())
    pool.acquire.return_value.__aenter__ = AsyncMock(return_value=mock_conn)
    pool.acquire.return_value.__aexit__ = AsyncMock(return_value=None)

    return pool


@pytest.fixture
def pagination() -> PaginationSettings:
    return PaginationSettings(default_page_size=20, max_page_size=200)


@pytest.fixture
def auth() -> AuthInfo:
    return AuthInfo(author_id=1, password="secret")


@pytest.fixture
def guard() -> MagicMock:
    """Identity guard that accepts every caller as user 1."""
    guard = MagicMock()
    guard.authenticate = AsyncMock(return_value=1)
    guard.login = AsyncMock(return_value=1)
    return guard
