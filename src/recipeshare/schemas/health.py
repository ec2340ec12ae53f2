"""Health check schemas."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import Field

from recipeshare.schemas.base import APIResponse


class HealthResponse(APIResponse):
    """Service status with the state of its dependencies."""

    status: str = Field(..., description="Health status", examples=["healthy"])
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Current server timestamp",
    )
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Deployment environment")
    dependencies: dict[str, str] = Field(
        default_factory=dict,
        description="Status of external dependencies",
    )
