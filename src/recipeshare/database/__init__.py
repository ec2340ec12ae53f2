"""PostgreSQL database layer.

This module provides:
- Connection pool management
- Schema management
- Repository classes for data access
- Health check utilities
"""

from recipeshare.database.connection import (
    check_database_health,
    close_database_pool,
    connection_scope,
    get_database_pool,
    init_database_pool,
)
from recipeshare.database.schema import SchemaManager


__all__ = [
    "SchemaManager",
    "check_database_health",
    "close_database_pool",
    "connection_scope",
    "get_database_pool",
    "init_database_pool",
]
