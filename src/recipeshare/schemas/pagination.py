"""Generic page envelope."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import Field

from recipeshare.schemas.base import APIResponse


T = TypeVar("T")


class Page(APIResponse, Generic[T]):
    """One window of an ordered result plus the total matching count."""

    items: list[T] = Field(default_factory=list)
    page: int
    size: int
    total: int
