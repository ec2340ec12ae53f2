"""Mapping of database rows onto the public record schemas.

Every read path goes through these helpers so column naming and
``NULL`` handling stay identical across queries. In particular an absent
aggregate rating stays ``None``; it is never reported as ``0``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from recipeshare.schemas.recipe import FeedItem, RecipeRecord
from recipeshare.schemas.review import ReviewRecord
from recipeshare.schemas.user import UserRecord


Row = Mapping[str, Any]

# Shared SELECT list for recipe rows joined to their author as ``u``.
RECIPE_COLUMNS = """
    r.id, r.name, r.author_id, u.name AS author_name,
    r.cook_time, r.prep_time, r.total_time, r.date_published,
    r.description, r.category, r.agg_rating, r.review_count,
    r.calories, r.fat, r.saturated_fat, r.cholesterol, r.sodium,
    r.carbohydrate, r.fiber, r.sugar, r.protein, r.servings, r.yield
"""

REVIEW_COLUMNS = """
    v.id, v.recipe_id, v.author_id, u.name AS author_name, v.rating,
    v.body, v.submitted_at, v.modified_at
"""


def sort_ingredients(ingredients: Iterable[str]) -> list[str]:
    """Case-insensitive order, ties broken by the raw text."""
    return sorted(ingredients, key=lambda item: (item.casefold(), item))


def user_from_row(
    row: Row,
    follower_ids: Iterable[int] = (),
    following_ids: Iterable[int] = (),
) -> UserRecord:
    """Build a ``UserRecord``; counts are derived from the id lists."""
    followers = sorted(follower_ids)
    following = sorted(following_ids)
    return UserRecord(
        author_id=row["id"],
        author_name=row["name"],
        gender=row["gender"],
        age=row["age"],
        followers=len(followers),
        following=len(following),
        follower_users=followers,
        following_users=following,
        is_deleted=row["is_deleted"],
    )


def recipe_from_row(row: Row, ingredients: Iterable[str] = ()) -> RecipeRecord:
    """Build a ``RecipeRecord`` from a row selected with ``RECIPE_COLUMNS``."""
    return RecipeRecord(
        recipe_id=row["id"],
        name=row["name"],
        author_id=row["author_id"],
        author_name=row["author_name"],
        cook_time=row["cook_time"],
        prep_time=row["prep_time"],
        total_time=row["total_time"],
        date_published=row["date_published"],
        description=row["description"],
        recipe_category=row["category"],
        recipe_ingredient_parts=sort_ingredients(ingredients),
        aggregated_rating=row["agg_rating"],
        review_count=row["review_count"] or 0,
        calories=row["calories"],
        fat_content=row["fat"],
        saturated_fat_content=row["saturated_fat"],
        cholesterol_content=row["cholesterol"],
        sodium_content=row["sodium"],
        carbohydrate_content=row["carbohydrate"],
        fiber_content=row["fiber"],
        sugar_content=row["sugar"],
        protein_content=row["protein"],
        recipe_servings=row["servings"],
        recipe_yield=row["yield"],
    )


def feed_item_from_row(row: Row) -> FeedItem:
    """Build a ``FeedItem`` from a recipe row joined to its author."""
    return FeedItem(
        recipe_id=row["id"],
        name=row["name"],
        author_id=row["author_id"],
        author_name=row["author_name"],
        date_published=row["date_published"],
        aggregated_rating=row["agg_rating"],
        review_count=row["review_count"] or 0,
    )


def review_from_row(row: Row, likes: Iterable[int] = ()) -> ReviewRecord:
    """Build a ``ReviewRecord`` from a row selected with ``REVIEW_COLUMNS``."""
    return ReviewRecord(
        review_id=row["id"],
        recipe_id=row["recipe_id"],
        author_id=row["author_id"],
        author_name=row["author_name"],
        rating=row["rating"],
        review=row["body"],
        date_submitted=row["submitted_at"],
        date_modified=row["modified_at"],
        likes=sorted(likes),
    )
