"""Review and like schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from recipeshare.schemas.base import APIRequest, APIResponse


class ReviewRecord(APIResponse):
    """A review with the sorted ids of the users who liked it."""

    review_id: int
    recipe_id: int
    author_id: int
    author_name: str | None = None
    rating: int
    review: str | None = None
    date_submitted: datetime | None = None
    date_modified: datetime | None = None
    likes: list[int] = Field(default_factory=list)


class ReviewWrite(APIRequest):
    """Body of an add or edit call. The range check lives in the service."""

    rating: int | None = None
    review: str | None = None


class ReviewIdResponse(APIResponse):
    """Id of a newly added review."""

    review_id: int


class LikeResponse(APIResponse):
    """Like count of a review after a like or unlike."""

    review_id: int
    likes: int
