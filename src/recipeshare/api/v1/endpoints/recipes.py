"""Recipe endpoints: detail, search, authoring and analytics."""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from recipeshare.api.dependencies import Auth, get_recipe_service
from recipeshare.schemas.pagination import Page
from recipeshare.schemas.recipe import (
    CaloriePair,
    IngredientComplexity,
    RecipeCreate,
    RecipeIdResponse,
    RecipeNameResponse,
    RecipeRecord,
    UpdateTimesRequest,
)
from recipeshare.services.recipes import RecipeService


router = APIRouter(prefix="/recipes", tags=["Recipes"])

Service = Annotated[RecipeService, Depends(get_recipe_service)]


@router.get(
    "/search",
    response_model=Page[RecipeRecord],
    summary="Search recipes",
    description=(
        "Case-insensitive keyword match on name or description, exact category "
        "and inclusive minimum rating. Sort keys: rating_desc, date_desc, "
        "calories_asc; anything else orders by id."
    ),
)
async def search_recipes(
    service: Service,
    keyword: Annotated[str | None, Query()] = None,
    category: Annotated[str | None, Query()] = None,
    min_rating: Annotated[Decimal | None, Query(alias="minRating")] = None,
    page: Annotated[int, Query()] = 1,
    size: Annotated[int | None, Query()] = None,
    sort: Annotated[str | None, Query()] = None,
) -> Page[RecipeRecord]:
    return await service.search_recipes(
        keyword=keyword,
        category=category,
        min_rating=min_rating,
        page=page,
        size=size,
        sort=sort,
    )


@router.get(
    "/analytics/closest-calorie-pair",
    response_model=CaloriePair | None,
    summary="Two recipes with the closest calorie values",
)
async def closest_calorie_pair(service: Service) -> CaloriePair | None:
    return await service.closest_calorie_pair()


@router.get(
    "/analytics/top3-complex-by-ingredients",
    response_model=list[IngredientComplexity],
    summary="Three recipes with the most distinct ingredients",
)
async def top_recipes_by_ingredients(service: Service) -> list[IngredientComplexity]:
    return await service.top_recipes_by_ingredients()


@router.post(
    "",
    response_model=RecipeIdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Publish a recipe",
)
async def create_recipe(auth: Auth, body: RecipeCreate, service: Service) -> RecipeIdResponse:
    return RecipeIdResponse(recipe_id=await service.create_recipe(auth, body))


@router.get(
    "/{recipe_id}",
    response_model=RecipeRecord,
    summary="Get a recipe",
)
async def get_recipe(recipe_id: Annotated[int, Path()], service: Service) -> RecipeRecord:
    return await service.get_recipe(recipe_id)


@router.get(
    "/{recipe_id}/name",
    response_model=RecipeNameResponse,
    summary="Get a recipe's name",
)
async def get_recipe_name(
    recipe_id: Annotated[int, Path()], service: Service
) -> RecipeNameResponse:
    return RecipeNameResponse(
        recipe_id=recipe_id, name=await service.get_recipe_name(recipe_id)
    )


@router.patch(
    "/{recipe_id}/times",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Update cook and/or prep time",
)
async def update_times(
    auth: Auth,
    recipe_id: Annotated[int, Path()],
    body: UpdateTimesRequest,
    service: Service,
) -> None:
    await service.update_times(
        auth, recipe_id, cook_time=body.cook_time, prep_time=body.prep_time
    )


@router.delete(
    "/{recipe_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a recipe with its reviews",
)
async def delete_recipe(
    auth: Auth,
    recipe_id: Annotated[int, Path()],
    service: Service,
) -> None:
    await service.delete_recipe(auth, recipe_id)
