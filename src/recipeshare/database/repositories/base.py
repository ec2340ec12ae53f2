"""Shared repository plumbing."""

from __future__ import annotations

from typing import TYPE_CHECKING

from recipeshare.database.connection import connection_scope, get_database_pool


if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager

    from asyncpg import Connection, Pool


class Repository:
    """Base for repositories holding raw SQL.

    Every method accepts an optional ``conn`` so it can join the caller's
    transaction; without one it borrows a connection for a single call.
    """

    def __init__(self, pool: Pool | None = None) -> None:
        """Initialize repository.

        Args:
            pool: Optional connection pool. If None, uses global pool.
        """
        self._pool = pool

    @property
    def pool(self) -> Pool:
        """Get connection pool."""
        if self._pool is not None:
            return self._pool
        return get_database_pool()

    def _scope(self, conn: Connection | None) -> AbstractAsyncContextManager[Connection]:
        return connection_scope(self.pool, conn)


def affected_rows(status: str) -> int:
    """Row count from a command status tag such as ``INSERT 0 42``."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError):
        return 0
