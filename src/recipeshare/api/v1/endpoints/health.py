"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request

from recipeshare.core.config import get_settings
from recipeshare.schemas.enums import HealthStatus
from recipeshare.schemas.health import HealthResponse


router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service and database health",
)
async def health_check(request: Request) -> HealthResponse:
    """Report ``healthy`` when the database answers, ``degraded`` otherwise.

    Before startup has wired the services the database is reported as
    ``not_initialized``.
    """
    settings = getattr(request.app.state, "settings", None) or get_settings()
    admin = getattr(request.app.state, "admin_service", None)
    if admin is None:
        status_value = HealthStatus.DEGRADED
        dependencies = {"database": "not_initialized"}
    else:
        report = await admin.health()
        status_value = report["status"]
        dependencies = report["dependencies"]

    return HealthResponse(
        status=status_value,
        version=settings.app.version,
        environment=settings.APP_ENV,
        dependencies=dependencies,
    )
