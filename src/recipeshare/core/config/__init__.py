"""Configuration module with YAML and environment variable support."""

from .settings import (
    ImportSettings,
    PaginationSettings,
    Settings,
    get_settings,
)


__all__ = [
    "ImportSettings",
    "PaginationSettings",
    "Settings",
    "get_settings",
]
