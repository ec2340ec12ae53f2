"""Admin endpoints: bulk import and destructive reset."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from recipeshare.api.dependencies import get_admin_service
from recipeshare.observability.logging import get_logger
from recipeshare.schemas.imports import DropResponse, ImportRequest, ImportSummary
from recipeshare.services.admin import AdminService


logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

Service = Annotated[AdminService, Depends(get_admin_service)]


@router.post(
    "/import",
    response_model=ImportSummary,
    summary="Bulk import users, recipes and reviews",
    description=(
        "Loads the given records in one transaction. Duplicate keys and rows "
        "referencing absent users or recipes are skipped, so the same batch "
        "may be sent again safely."
    ),
)
async def import_data(body: ImportRequest, service: Service) -> ImportSummary:
    return await service.import_data(body)


@router.post(
    "/drop",
    response_model=DropResponse,
    summary="Drop all data",
    description="Destructive. Drops every table and recreates an empty schema.",
)
async def drop_all(service: Service) -> DropResponse:
    logger.warning("Drop of all data requested")
    await service.drop_all()
    return DropResponse(dropped=True)
