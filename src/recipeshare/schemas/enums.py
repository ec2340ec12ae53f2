"""Enumeration types shared by the API schemas and the services."""

from __future__ import annotations

from enum import StrEnum


class Gender(StrEnum):
    """Gender values accepted for a user profile."""

    MALE = "Male"
    FEMALE = "Female"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: str | None) -> Gender:
        """Case-insensitive lookup; anything unrecognised maps to UNKNOWN."""
        if value:
            normalized = value.strip().lower()
            for member in cls:
                if member.value.lower() == normalized:
                    return member
        return cls.UNKNOWN


class RecipeSort(StrEnum):
    """Sort keys accepted by recipe search."""

    RATING_DESC = "rating_desc"
    DATE_DESC = "date_desc"
    CALORIES_ASC = "calories_asc"


class ReviewSort(StrEnum):
    """Sort keys accepted by review listing."""

    DATE_DESC = "date_desc"
    LIKES_DESC = "likes_desc"


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
