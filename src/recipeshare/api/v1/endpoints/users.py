"""User endpoints: registration, login, profile, follow graph and feed."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from recipeshare.api.dependencies import Auth, get_user_service
from recipeshare.schemas.pagination import Page
from recipeshare.schemas.recipe import FeedItem
from recipeshare.schemas.user import (
    AuthInfo,
    AuthorIdResponse,
    DeletedResponse,
    FollowCounts,
    FollowRatio,
    FollowResponse,
    RegisterUserRequest,
    UpdateProfileRequest,
    UserRecord,
)
from recipeshare.services.users import UserService


router = APIRouter(prefix="/users", tags=["Users"])

Service = Annotated[UserService, Depends(get_user_service)]


@router.post(
    "/register",
    response_model=AuthorIdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a user",
)
async def register(body: RegisterUserRequest, service: Service) -> AuthorIdResponse:
    return AuthorIdResponse(author_id=await service.register(body))


@router.post(
    "/login",
    response_model=AuthorIdResponse,
    summary="Check a user's credential",
)
async def login(body: AuthInfo, service: Service) -> AuthorIdResponse:
    return AuthorIdResponse(author_id=await service.login(body))


@router.get(
    "/feed",
    response_model=Page[FeedItem],
    summary="Recipes by followed users, newest first",
)
async def feed(
    auth: Auth,
    service: Service,
    page: Annotated[int, Query()] = 1,
    size: Annotated[int | None, Query()] = None,
    category: Annotated[str | None, Query()] = None,
) -> Page[FeedItem]:
    return await service.feed(auth, page, size, category)


@router.get(
    "/analytics/highest-follow-ratio",
    response_model=FollowRatio | None,
    summary="Active user with the highest followers / following ratio",
)
async def highest_follow_ratio(service: Service) -> FollowRatio | None:
    return await service.highest_follow_ratio()


@router.put(
    "/profile",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Update the caller's gender and/or age",
)
async def update_profile(auth: Auth, body: UpdateProfileRequest, service: Service) -> None:
    await service.update_profile(auth, gender=body.gender, age=body.age)


@router.post(
    "/follow/{followee_id}",
    response_model=FollowResponse,
    summary="Follow or unfollow a user",
)
async def follow(
    auth: Auth,
    followee_id: Annotated[int, Path()],
    service: Service,
) -> FollowResponse:
    return FollowResponse(following=await service.follow(auth, followee_id))


@router.get(
    "/{user_id}",
    response_model=UserRecord,
    summary="Get a user with follower and following ids",
)
async def get_user(user_id: Annotated[int, Path()], service: Service) -> UserRecord:
    return await service.get_user(user_id)


@router.get(
    "/{user_id}/follow-counts",
    response_model=FollowCounts,
    summary="Follower and following counts of a user",
)
async def follow_counts(user_id: Annotated[int, Path()], service: Service) -> FollowCounts:
    followers, following = await service.follow_counts(user_id)
    return FollowCounts(author_id=user_id, followers=followers, following=following)


@router.delete(
    "/{user_id}",
    response_model=DeletedResponse,
    summary="Soft-delete the caller's own account",
)
async def delete_account(
    auth: Auth,
    user_id: Annotated[int, Path()],
    service: Service,
) -> DeletedResponse:
    return DeletedResponse(deleted=await service.delete_account(auth, user_id))
