"""Pydantic schemas for requests, responses and core records."""

from recipeshare.schemas.base import APIRequest, APIResponse, ExternalRecord
from recipeshare.schemas.enums import Gender, HealthStatus, RecipeSort, ReviewSort
from recipeshare.schemas.imports import (
    ImportRequest,
    ImportSummary,
    RecipeImportRecord,
    ReviewImportRecord,
    TableImportCount,
    UserImportRecord,
)
from recipeshare.schemas.pagination import Page
from recipeshare.schemas.recipe import (
    CaloriePair,
    FeedItem,
    IngredientComplexity,
    RecipeAggregate,
    RecipeCreate,
    RecipeRecord,
)
from recipeshare.schemas.review import ReviewRecord, ReviewWrite
from recipeshare.schemas.user import (
    AuthInfo,
    FollowRatio,
    RegisterUserRequest,
    UserRecord,
)


__all__ = [
    "APIRequest",
    "APIResponse",
    "AuthInfo",
    "CaloriePair",
    "ExternalRecord",
    "FeedItem",
    "FollowRatio",
    "Gender",
    "HealthStatus",
    "ImportRequest",
    "ImportSummary",
    "IngredientComplexity",
    "Page",
    "RecipeAggregate",
    "RecipeCreate",
    "RecipeImportRecord",
    "RecipeRecord",
    "RecipeSort",
    "RegisterUserRequest",
    "ReviewImportRecord",
    "ReviewRecord",
    "ReviewSort",
    "ReviewWrite",
    "TableImportCount",
    "UserImportRecord",
    "UserRecord",
]
