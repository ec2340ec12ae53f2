"""Administrative operations: bulk import, reset and health."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from recipeshare.database.connection import check_database_health
from recipeshare.observability.logging import get_logger
from recipeshare.schemas.enums import HealthStatus


if TYPE_CHECKING:
    from asyncpg import Pool

    from recipeshare.database.schema import SchemaManager
    from recipeshare.schemas.imports import ImportRequest, ImportSummary
    from recipeshare.services.importing import BulkImportService

logger = get_logger(__name__)


class AdminService:
    """Entry points that act on the whole dataset."""

    def __init__(
        self,
        pool: Pool,
        schema: SchemaManager,
        importer: BulkImportService,
    ) -> None:
        self._pool = pool
        self._schema = schema
        self._importer = importer

    async def import_data(self, request: ImportRequest) -> ImportSummary:
        return await self._importer.import_batch(
            users=request.users,
            recipes=request.recipes,
            reviews=request.reviews,
        )

    async def drop_all(self) -> None:
        """Drop every table, then recreate the empty schema.

        Destructive; meant for test and reset flows only.
        """
        logger.warning("Dropping all data")
        await self._schema.drop_all()
        await self._schema.ensure_schema()

    async def health(self) -> dict[str, Any]:
        """Overall status plus the database check."""
        dependencies = await check_database_health(self._pool)
        healthy = all(state == "healthy" for state in dependencies.values())
        return {
            "status": HealthStatus.HEALTHY if healthy else HealthStatus.DEGRADED,
            "dependencies": dependencies,
        }
