"""FastAPI dependencies for service access and caller identity.

Services are built during application startup and stored on ``app.state``.
The caller's identity travels in the ``X-Author-Id`` and
``X-Author-Password`` headers; checking it is left to the services.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Any

from fastapi import Depends, Header, HTTPException, Request, status

from recipeshare.schemas.user import AuthInfo


if TYPE_CHECKING:
    from recipeshare.services.admin import AdminService
    from recipeshare.services.recipes import RecipeService
    from recipeshare.services.reviews import ReviewService
    from recipeshare.services.users import UserService


def _service(request: Request, name: str) -> Any:
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not available",
        )
    return service


async def get_user_service(request: Request) -> UserService:
    return _service(request, "user_service")


async def get_recipe_service(request: Request) -> RecipeService:
    return _service(request, "recipe_service")


async def get_review_service(request: Request) -> ReviewService:
    return _service(request, "review_service")


async def get_admin_service(request: Request) -> AdminService:
    return _service(request, "admin_service")


async def get_auth_info(
    author_id: Annotated[int | None, Header(alias="X-Author-Id")] = None,
    password: Annotated[str | None, Header(alias="X-Author-Password")] = None,
) -> AuthInfo | None:
    """Claimed identity from the request headers, ``None`` when absent."""
    if author_id is None:
        return None
    return AuthInfo(author_id=author_id, password=password)


Auth = Annotated[AuthInfo | None, Depends(get_auth_info)]
