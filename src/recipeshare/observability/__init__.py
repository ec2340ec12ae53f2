"""Observability components: logging and metrics."""

from recipeshare.observability.logging import (
    bind_context,
    clear_context,
    current_context,
    get_logger,
    setup_logging,
)


__all__ = [
    "bind_context",
    "clear_context",
    "current_context",
    "get_logger",
    "setup_logging",
]
