"""Recipe schemas: detail record, creation payload and analytics results."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from recipeshare.schemas.base import APIRequest, APIResponse, JsonDecimal


class RecipeRecord(APIResponse):
    """Full recipe with its author name and case-insensitively sorted ingredients."""

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
    review_count: int = 0
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


class RecipeCreate(APIRequest):
    """Payload for publishing a recipe.

    ``date_published`` defaults to the time of creation. Rating and review
    count always start empty.
    """

    name: str | None = None
    cook_time: str | None = None
    prep_time: str | None = None
    date_published: datetime | None = None
    description: str | None = None
    recipe_category: str | None = None
    recipe_ingredient_parts: list[str] = Field(default_factory=list)
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


class UpdateTimesRequest(APIRequest):
    """ISO-8601 durations; ``None`` keeps the stored value."""

    cook_time: str | None = None
    prep_time: str | None = None


class FeedItem(APIResponse):
    """Recipe summary shown in a follower's feed."""

    recipe_id: int
    name: str
    author_id: int
    author_name: str | None = None
    date_published: datetime | None = None
    aggregated_rating: JsonDecimal | None = None
    review_count: int = 0


class RecipeAggregate(APIResponse):
    """Derived rating state of one recipe."""

    recipe_id: int
    aggregated_rating: JsonDecimal | None = None
    review_count: int = 0


class CaloriePair(APIResponse):
    """Two recipes whose calorie values are closest, ``recipe_a < recipe_b``."""

    recipe_a: int
    recipe_b: int
    calories_a: JsonDecimal
    calories_b: JsonDecimal
    difference: JsonDecimal


class IngredientComplexity(APIResponse):
    """Recipe ranked by its number of distinct ingredients."""

    recipe_id: int
    name: str
    ingredient_count: int


class RecipeIdResponse(APIResponse):
    """Id of a newly created recipe."""

    recipe_id: int


class RecipeNameResponse(APIResponse):
    """Name lookup result; ``name`` is ``None`` for an unknown id."""

    recipe_id: int
    name: str | None = None
