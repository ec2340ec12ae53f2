"""Review endpoints: lifecycle, likes, listing and aggregate refresh."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from recipeshare.api.dependencies import Auth, get_review_service
from recipeshare.schemas.pagination import Page
from recipeshare.schemas.recipe import RecipeRecord
from recipeshare.schemas.review import (
    LikeResponse,
    ReviewIdResponse,
    ReviewRecord,
    ReviewWrite,
)
from recipeshare.services.reviews import ReviewService


router = APIRouter(tags=["Reviews"])

Service = Annotated[ReviewService, Depends(get_review_service)]


@router.get(
    "/recipes/{recipe_id}/reviews",
    response_model=Page[ReviewRecord],
    summary="List a recipe's reviews",
    description="Sort keys: date_desc, likes_desc; anything else orders by id.",
)
async def list_reviews(
    recipe_id: Annotated[int, Path()],
    service: Service,
    page: Annotated[int, Query()] = 1,
    size: Annotated[int | None, Query()] = None,
    sort: Annotated[str | None, Query()] = None,
) -> Page[ReviewRecord]:
    return await service.list_reviews(recipe_id, page=page, size=size, sort=sort)


@router.post(
    "/recipes/{recipe_id}/reviews",
    response_model=ReviewIdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Review a recipe",
)
async def add_review(
    auth: Auth,
    recipe_id: Annotated[int, Path()],
    body: ReviewWrite,
    service: Service,
) -> ReviewIdResponse:
    review_id = await service.add_review(auth, recipe_id, body.rating, body.review)
    return ReviewIdResponse(review_id=review_id)


@router.post(
    "/recipes/{recipe_id}/reviews/refresh-rating",
    response_model=RecipeRecord,
    summary="Recompute a recipe's rating from its reviews",
)
async def refresh_rating(
    recipe_id: Annotated[int, Path()], service: Service
) -> RecipeRecord:
    return await service.refresh_recipe_aggregated_rating(recipe_id)


@router.put(
    "/recipes/{recipe_id}/reviews/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Edit the caller's review",
)
async def edit_review(
    auth: Auth,
    recipe_id: Annotated[int, Path()],
    review_id: Annotated[int, Path()],
    body: ReviewWrite,
    service: Service,
) -> None:
    await service.edit_review(auth, recipe_id, review_id, body.rating, body.review)


@router.delete(
    "/recipes/{recipe_id}/reviews/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete the caller's review",
)
async def delete_review(
    auth: Auth,
    recipe_id: Annotated[int, Path()],
    review_id: Annotated[int, Path()],
    service: Service,
) -> None:
    await service.delete_review(auth, recipe_id, review_id)


@router.post(
    "/reviews/{review_id}/like",
    response_model=LikeResponse,
    summary="Like a review",
)
async def like_review(
    auth: Auth, review_id: Annotated[int, Path()], service: Service
) -> LikeResponse:
    return LikeResponse(review_id=review_id, likes=await service.like_review(auth, review_id))


@router.delete(
    "/reviews/{review_id}/like",
    response_model=LikeResponse,
    summary="Remove the caller's like",
)
async def unlike_review(
    auth: Auth, review_id: Annotated[int, Path()], service: Service
) -> LikeResponse:
    return LikeResponse(
        review_id=review_id, likes=await service.unlike_review(auth, review_id)
    )
