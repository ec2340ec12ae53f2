"""Bulk import records and the import summary.

Records accept the camelCase column names of the external dataset
(``authorId``, ``recipeIngredientParts``, ``followerUsers``...). Values the
schema cannot store are normalized here rather than rejected, so one odd
row never fails a whole batch.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import Field, field_validator

from recipeshare.schemas.base import APIRequest, APIResponse, ExternalRecord, JsonDecimal
from recipeshare.schemas.enums import Gender


def _assume_utc(v: datetime | None) -> datetime | None:
    """Dataset timestamps without an offset are UTC."""
    if v is not None and v.tzinfo is None:
        return v.replace(tzinfo=UTC)
    return v


class UserImportRecord(ExternalRecord):
    """One user of the dataset, with both directions of its follow edges."""

    author_id: int
    author_name: str
    gender: str | None = None
    age: int | None = None
    followers: int | None = None
    following: int | None = None
    follower_users: list[int] = Field(default_factory=list)
    following_users: list[int] = Field(default_factory=list)
    password: str | None = Field(default=None, repr=False)
    is_deleted: bool = False

    @field_validator("gender", mode="before")
    @classmethod
    def normalize_gender(cls, v: str | None) -> str:
        """Map free-form gender text onto the stored enumeration."""
        return Gender.parse(v).value

    @field_validator("age")
    @classmethod
    def drop_non_positive_age(cls, v: int | None) -> int | None:
        """Ages must be positive; anything else is unknown."""
        if v is not None and v <= 0:
            return None
        return v

    @field_validator("follower_users", "following_users", mode="before")
    @classmethod
    def none_as_empty(cls, v: list[int] | None) -> list[int]:
        """Treat a missing id list as empty."""
        return v or []


class RecipeImportRecord(ExternalRecord):
    """One recipe of the dataset with its ingredient list."""

    recipe_id: int
    name: str
    author_id: int
    author_name: str | None = None
    cook_time: str | None = None
    prep_time: str | None = None
    total_time: str | None = None
    date_published: datetime | None = None
    description: str | None = None
    recipe_category: str | None = None
    recipe_ingredient_parts: list[str] = Field(default_factory=list)
    aggregated_rating: JsonDecimal | None = None
    review_count: int | None = None
    calories: JsonDecimal | None = None
    fat_content: JsonDecimal | None = None
    saturated_fat_content: JsonDecimal | None = None
    cholesterol_content: JsonDecimal | None = None
    sodium_content: JsonDecimal | None = None
    carbohydrate_content: JsonDecimal | None = None
    fiber_content: JsonDecimal | None = None
    sugar_content: JsonDecimal | None = None
    protein_content: JsonDecimal | None = None
    recipe_servings: str | None = None
    recipe_yield: str | None = None

    @field_validator("recipe_ingredient_parts", mode="before")
    @classmethod
    def none_as_empty(cls, v: list[str] | None) -> list[str]:
        """Treat a missing ingredient list as empty."""
        return v or []

    @field_validator("date_published")
    @classmethod
    def published_as_utc(cls, v: datetime | None) -> datetime | None:
        return _assume_utc(v)

    @field_validator("recipe_servings", "recipe_yield", mode="before")
    @classmethod
    def stringify(cls, v: object) -> str | None:
        """Servings and yield arrive as numbers or text; both are stored as text."""
        if v is None:
            return None
        return str(v)


class ReviewImportRecord(ExternalRecord):
    """One review of the dataset with the ids of the users who liked it."""

    review_id: int
    recipe_id: int
    author_id: int
    author_name: str | None = None
    rating: float | None = None
    review: str | None = None
    date_submitted: datetime | None = None
    date_modified: datetime | None = None
    likes: list[int] = Field(default_factory=list)

    @field_validator("date_submitted", "date_modified")
    @classmethod
    def timestamps_as_utc(cls, v: datetime | None) -> datetime | None:
        return _assume_utc(v)

    @field_validator("likes", mode="before")
    @classmethod
    def none_as_empty(cls, v: list[int] | None) -> list[int]:
        """Treat a missing like list as empty."""
        return v or []


class ImportRequest(APIRequest):
    """Body of the admin import call. Each list may be empty or absent."""

    users: list[UserImportRecord] | None = None
    recipes: list[RecipeImportRecord] | None = None
    reviews: list[ReviewImportRecord] | None = None


class TableImportCount(APIResponse):
    """Rows handed to one table and rows it actually accepted."""

    submitted: int = 0
    inserted: int = 0


class ImportSummary(APIResponse):
    """Per-table outcome of one bulk import."""

    users: TableImportCount = Field(default_factory=TableImportCount)
    recipes: TableImportCount = Field(default_factory=TableImportCount)
    ingredients: TableImportCount = Field(default_factory=TableImportCount)
    reviews: TableImportCount = Field(default_factory=TableImportCount)
    likes: TableImportCount = Field(default_factory=TableImportCount)
    follows: TableImportCount = Field(default_factory=TableImportCount)
    duration_ms: float = 0.0


class DropResponse(APIResponse):
    """Outcome of the destructive reset."""

    dropped: bool
