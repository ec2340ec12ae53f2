"""Database repositories."""

from recipeshare.database.repositories.importing import ImportRepository
from recipeshare.database.repositories.recipes import RecipeFilter, RecipeRepository
from recipeshare.database.repositories.reviews import ReviewRepository
from recipeshare.database.repositories.users import UserRepository


__all__ = [
    "ImportRepository",
    "RecipeFilter",
    "RecipeRepository",
    "ReviewRepository",
    "UserRepository",
]
