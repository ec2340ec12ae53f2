"""User service: registration, profile, follow graph and feed."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

import asyncpg

from recipeshare.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
    translate_storage_errors,
)
from recipeshare.database.records import feed_item_from_row, user_from_row
from recipeshare.observability.logging import get_logger
from recipeshare.schemas.enums import Gender
from recipeshare.schemas.user import FollowRatio
from recipeshare.services.pagination import PageRequest


if TYPE_CHECKING:
    from asyncpg import Pool

    from recipeshare.core.config import PaginationSettings
    from recipeshare.database.repositories.recipes import RecipeRepository
    from recipeshare.database.repositories.users import UserRepository
    from recipeshare.schemas.pagination import Page
    from recipeshare.schemas.recipe import FeedItem
    from recipeshare.schemas.user import AuthInfo, RegisterUserRequest, UserRecord
    from recipeshare.services.aggregates import AggregateMaintainer
    from recipeshare.services.identity import IdentityGuard

logger = get_logger(__name__)


def age_on(birthday: date, today: date) -> int:
    """Whole years between ``birthday`` and ``today``."""
    years = today.year - birthday.year
    if (today.month, today.day) < (birthday.month, birthday.day):
        years -= 1
    return years


def parse_gender(value: str | None) -> str:
    """Strict gender check for user input.

    Raises:
        ValidationError: If ``value`` is not one of the accepted genders.
    """
    if value is not None:
        for member in Gender:
            if member.value.lower() == value.strip().lower():
                return member.value
    allowed = ", ".join(member.value for member in Gender)
    raise ValidationError(f"gender must be one of: {allowed}", field="gender")


class UserService:
    """Operations on users and the follow graph."""

    def __init__(
        self,
        pool: Pool,
        users: UserRepository,
        recipes: RecipeRepository,
        guard: IdentityGuard,
        aggregates: AggregateMaintainer,
        pagination: PaginationSettings,
    ) -> None:
        self._pool = pool
        self._users = users
        self._recipes = recipes
        self._guard = guard
        self._aggregates = aggregates
        self._pagination = pagination

    async def register(self, request: RegisterUserRequest) -> int:
        """Create a user and return its id.

        Raises:
            ValidationError: If name, gender, birthday or password is invalid.
            ConflictError: If the name is taken.
        """
        name = (request.name or "").strip()
        if not name:
            raise ValidationError("name must not be blank", field="name")
        gender = parse_gender(request.gender)
        if request.birthday is None:
            raise ValidationError("birthday is required", field="birthday")
        today = datetime.now(UTC).date()
        if request.birthday > today:
            raise ValidationError("birthday must not be in the future", field="birthday")
        age = age_on(request.birthday, today)
        if age <= 0:
            raise ValidationError("age derived from birthday must be > 0", field="birthday")
        if not request.password or not request.password.strip():
            raise ValidationError("password must not be blank", field="password")

        async with self._pool.acquire() as conn:
            with translate_storage_errors("register", name=name):
                try:
                    async with conn.transaction():
                        if await self._users.name_taken(name, conn):
                            raise ConflictError(f"User name '{name}' is already taken")
                        user_id = await self._users.create(
                            name, gender, age, request.password, conn
                        )
                except asyncpg.UniqueViolationError as exc:
                    raise ConflictError(f"User name '{name}' is already taken") from exc

        logger.info("User registered", author_id=user_id)
        return user_id

    async def login(self, auth: AuthInfo | None) -> int:
        return await self._guard.login(auth)

    async def get_user(self, user_id: int) -> UserRecord:
        """Profile with follower/following ids; deleted users carry the flag.

        Raises:
            NotFoundError: If the user does not exist.
        """
        async with self._pool.acquire() as conn:
            with translate_storage_errors("get_user", user_id=user_id):
                row = await self._users.get(user_id, conn)
                if row is None:
                    raise NotFoundError("User", user_id)
                follower_ids = await self._users.follower_ids(user_id, conn)
                following_ids = await self._users.following_ids(user_id, conn)
        return user_from_row(row, follower_ids, following_ids)

    async def update_profile(
        self,
        auth: AuthInfo | None,
        gender: str | None = None,
        age: int | None = None,
    ) -> None:
        """Change gender and/or age of the caller. Both ``None`` is a no-op.

        Raises:
            AuthorizationError: If the identity is rejected.
            ValidationError: If a given value is invalid.
        """
        if gender is not None:
            gender = parse_gender(gender)
        if age is not None and age <= 0:
            raise ValidationError("age must be > 0", field="age")

        async with self._pool.acquire() as conn:
            with translate_storage_errors("update_profile"):
                async with conn.transaction():
                    user_id = await self._guard.authenticate(auth, conn)
                    if gender is None and age is None:
                        return
                    await self._users.update_profile(user_id, gender, age, conn)

        logger.info("Profile updated", author_id=user_id)

    async def delete_account(self, auth: AuthInfo | None, user_id: int) -> bool:
        """Soft-delete the caller's own account and drop its follow edges.

        Raises:
            AuthorizationError: If the identity is rejected or belongs to
                another user.
        """
        async with self._pool.acquire() as conn:
            with translate_storage_errors("delete_account", user_id=user_id):
                async with conn.transaction():
                    caller_id = await self._guard.authenticate(auth, conn)
                    if caller_id != user_id:
                        logger.warning(
                            "Account deletion denied", author_id=caller_id, target_id=user_id
                        )
                        raise AuthorizationError("Cannot delete another user's account")
                    deleted = await self._users.soft_delete(user_id, conn)

        logger.info("Account deleted", author_id=user_id)
        return deleted

    async def follow(self, auth: AuthInfo | None, followee_id: int) -> bool:
        """Toggle the follow edge from the caller to ``followee_id``.

        Returns:
            True if the caller now follows, False if they unfollowed.

        Raises:
            AuthorizationError: On self-follow, a deleted followee or a
                rejected identity.
            NotFoundError: If the followee does not exist.
        """
        async with self._pool.acquire() as conn:
            with translate_storage_errors("follow", followee_id=followee_id):
                async with conn.transaction():
                    follower_id = await self._guard.authenticate(auth, conn)
                    if follower_id == followee_id:
                        raise AuthorizationError("Cannot follow yourself")
                    followee = await self._users.get(followee_id, conn)
                    if followee is None:
                        raise NotFoundError("User", followee_id)
                    if followee["is_deleted"]:
                        raise AuthorizationError("Cannot follow an inactive user")
                    following = await self._users.toggle_follow(
                        follower_id, followee_id, conn
                    )

        logger.info(
            "Follow toggled",
            author_id=follower_id,
            followee_id=followee_id,
            following=following,
        )
        return following

    async def follow_counts(self, user_id: int) -> tuple[int, int]:
        """``(followers, following)`` of an existing user.

        Raises:
            NotFoundError: If the user does not exist.
        """
        async with self._pool.acquire() as conn:
            with translate_storage_errors("follow_counts", user_id=user_id):
                if await self._users.get(user_id, conn) is None:
                    raise NotFoundError("User", user_id)
                return await self._aggregates.follow_counts(user_id, conn)

    async def feed(
        self,
        auth: AuthInfo | None,
        page: int = 1,
        size: int | None = None,
        category: str | None = None,
    ) -> Page[FeedItem]:
        """Recipes by the users the caller follows, newest first."""
        request = PageRequest.of(
            page,
            self._pagination.default_page_size if size is None else size,
            self._pagination.max_page_size,
        )

        async with self._pool.acquire() as conn:
            with translate_storage_errors("feed"):
                user_id = await self._guard.authenticate(auth, conn)
                followee_ids = await self._users.following_ids(user_id, conn)
                if not followee_ids:
                    return request.to_page([], 0)
                rows, total = await self._recipes.feed(followee_ids, category, request, conn)

        return request.to_page([feed_item_from_row(row) for row in rows], total)

    async def highest_follow_ratio(self) -> FollowRatio | None:
        """Active user with the highest followers / following ratio, if any."""
        async with self._pool.acquire() as conn:
            with translate_storage_errors("highest_follow_ratio"):
                row = await self._users.highest_follow_ratio(conn)
        if row is None:
            return None
        return FollowRatio(
            author_id=row["id"],
            author_name=row["name"],
            ratio=float(row["ratio"]),
        )
