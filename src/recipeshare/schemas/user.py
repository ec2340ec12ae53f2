"""User, identity and follow-graph schemas."""

from __future__ import annotations

from datetime import date

from pydantic import Field

from recipeshare.schemas.base import APIRequest, APIResponse


class AuthInfo(APIRequest):
    """Identity claimed by a caller: a user id plus its credential."""

    author_id: int
    password: str | None = Field(default=None, repr=False)


class RegisterUserRequest(APIRequest):
    """Registration payload. Field checks happen in ``UserService.register``."""

    name: str | None = None
    gender: str | None = None
    birthday: date | None = None
    password: str | None = Field(default=None, repr=False)


class UpdateProfileRequest(APIRequest):
    """Profile fields a user may change; ``None`` keeps the stored value."""

    gender: str | None = None
    age: int | None = None


class UserRecord(APIResponse):
    """Public view of a user. The credential is never part of it."""

    author_id: int
    author_name: str
    gender: str | None = None
    age: int | None = None
    followers: int = 0
    following: int = 0
    follower_users: list[int] = Field(default_factory=list)
    following_users: list[int] = Field(default_factory=list)
    is_deleted: bool = False


class FollowRatio(APIResponse):
    """Leaderboard entry for the highest followers / following ratio."""

    author_id: int
    author_name: str
    ratio: float


class AuthorIdResponse(APIResponse):
    """Id of the user a call resolved to."""

    author_id: int


class FollowResponse(APIResponse):
    """Outcome of a follow toggle."""

    following: bool


class DeletedResponse(APIResponse):
    """Outcome of a delete call."""

    deleted: bool


class FollowCounts(APIResponse):
    """Follower and following counts derived from the edge table."""

    author_id: int
    followers: int
    following: int
