"""Page requests, sort specifications and filter helpers.

Every paginated query orders by a ``SortSpec`` whose last term is the
primary key, so equal sort values never make a page boundary ambiguous.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TypeVar

from recipeshare.core.exceptions import ValidationError
from recipeshare.schemas.enums import RecipeSort, ReviewSort
from recipeshare.schemas.pagination import Page


T = TypeVar("T")
K = TypeVar("K", bound=StrEnum)


@dataclass(frozen=True, slots=True)
class PageRequest:
    """Validated 1-based page window."""

    page: int
    size: int

    @classmethod
    def of(cls, page: int, size: int, max_size: int) -> PageRequest:
        """Validate ``page``/``size`` and clamp ``size`` to ``max_size``.

        Raises:
            ValidationError: If ``page < 1`` or ``size <= 0``.
        """
        if page < 1:
            raise ValidationError("page must be >= 1", field="page")
        if size <= 0:
            raise ValidationError("size must be > 0", field="size")
        return cls(page=page, size=min(size, max_size))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size

    @property
    def limit(self) -> int:
        return self.size

    def to_page(self, items: list[T], total: int) -> Page[T]:
        """Wrap one window of results."""
        return Page(items=items, page=self.page, size=self.size, total=total)


@dataclass(frozen=True, slots=True)
class OrderTerm:
    """One ``ORDER BY`` term."""

    column: str
    descending: bool = False
    nulls_last: bool = False

    def sql(self) -> str:
        direction = "DESC" if self.descending else "ASC"
        nulls = " NULLS LAST" if self.nulls_last else ""
        return f"{self.column} {direction}{nulls}"


@dataclass(frozen=True, slots=True)
class SortSpec:
    """Ordered tuple of terms, rendered as an ``ORDER BY`` clause."""

    terms: tuple[OrderTerm, ...]

    def sql(self) -> str:
        return "ORDER BY " + ", ".join(term.sql() for term in self.terms)


RECIPE_DEFAULT_SORT = SortSpec((OrderTerm("r.id"),))

RECIPE_SORTS: dict[RecipeSort, SortSpec] = {
    RecipeSort.RATING_DESC: SortSpec(
        (
            OrderTerm("r.agg_rating", descending=True, nulls_last=True),
            OrderTerm("r.id", descending=True),
        )
    ),
    RecipeSort.DATE_DESC: SortSpec(
        (
            OrderTerm("r.date_published", descending=True, nulls_last=True),
            OrderTerm("r.id", descending=True),
        )
    ),
    RecipeSort.CALORIES_ASC: SortSpec(
        (
            OrderTerm("r.calories", nulls_last=True),
            OrderTerm("r.id"),
        )
    ),
}

REVIEW_DEFAULT_SORT = SortSpec((OrderTerm("v.id"),))

REVIEW_SORTS: dict[ReviewSort, SortSpec] = {
    ReviewSort.DATE_DESC: SortSpec(
        (
            OrderTerm("v.modified_at", descending=True, nulls_last=True),
            OrderTerm("v.id", descending=True),
        )
    ),
    ReviewSort.LIKES_DESC: SortSpec(
        (
            OrderTerm("like_count", descending=True),
            OrderTerm("v.id", descending=True),
        )
    ),
}

FEED_SORT = SortSpec(
    (
        OrderTerm("r.date_published", descending=True, nulls_last=True),
        OrderTerm("r.id", descending=True),
    )
)


def _lookup(
    sorts: dict[K, SortSpec],
    enum: type[K],
    key: str | None,
    default: SortSpec,
) -> SortSpec:
    if not key:
        return default
    try:
        return sorts[enum(key.strip().lower())]
    except (ValueError, KeyError):
        return default


def recipe_sort(key: str | None) -> SortSpec:
    """Ordering for a recipe sort key; unknown or empty keys give ``id ASC``."""
    return _lookup(RECIPE_SORTS, RecipeSort, key, RECIPE_DEFAULT_SORT)


def review_sort(key: str | None) -> SortSpec:
    """Ordering for a review sort key; unknown or empty keys give ``id ASC``."""
    return _lookup(REVIEW_SORTS, ReviewSort, key, REVIEW_DEFAULT_SORT)


def escape_like(value: str) -> str:
    """Escape ``LIKE`` wildcards so ``value`` matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def contains_pattern(keyword: str) -> str:
    """``ILIKE`` pattern matching ``keyword`` anywhere in the text."""
    return f"%{escape_like(keyword)}%"


__all__ = [
    "FEED_SORT",
    "OrderTerm",
    "Page",
    "PageRequest",
    "SortSpec",
    "contains_pattern",
    "escape_like",
    "recipe_sort",
    "review_sort",
]
