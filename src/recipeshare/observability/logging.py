"""Loguru setup for the service.

Production writes one JSON object per line; development writes coloured
text. Fields bound for the current request (``request_id``, ``author_id``,
method and path) are merged into every line. Credential fields are never
written, whichever call site passes them.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import orjson
from loguru import logger


if TYPE_CHECKING:
    from collections.abc import Mapping


REDACTED_FIELDS = frozenset({"password", "credential"})

# Library loggers that are noisy below WARNING.
QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "asyncpg", "asyncio")

_request_fields: ContextVar[Mapping[str, Any]] = ContextVar(
    "request_fields", default=MappingProxyType({})
)


def bind_context(**fields: Any) -> None:
    """Add fields to every log line of the current request."""
    _request_fields.set(MappingProxyType({**_request_fields.get(), **fields}))


def clear_context() -> None:
    """Forget the fields of the previous request."""
    _request_fields.set(MappingProxyType({}))


def current_context() -> Mapping[str, Any]:
    """Read-only view of the fields bound for the current request."""
    return _request_fields.get()


def _visible(fields: Mapping[str, Any]) -> dict[str, Any]:
    # "name" is the binding added by get_logger; it is already the logger field.
    return {k: v for k, v in fields.items() if k not in REDACTED_FIELDS and k != "name"}


def _escape(text: str) -> str:
    # Loguru formats the returned string again.
    return text.replace("{", "{{").replace("}", "}}")


def _json_line(record: dict[str, Any]) -> str:
    payload: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["name"],
        "location": f"{record['function']}:{record['line']}",
        "message": record["message"],
        **_visible(current_context()),
        **_visible(record["extra"]),
    }
    exception = record["exception"]
    if exception:
        payload["exception"] = {
            "type": exception.type.__name__ if exception.type else None,
            "value": str(exception.value) if exception.value else None,
        }
    return _escape(orjson.dumps(payload, default=str).decode()) + "\n"


def _text_line(record: dict[str, Any]) -> str:
    fields = {**_visible(current_context()), **_visible(record["extra"])}
    suffix = _escape(" ".join(f"{k}={v}" for k, v in fields.items()))
    line = (
        "<green>{time:HH:mm:ss.SSS}</green> <level>{level: <7}</level> "
        "<cyan>{name}</cyan> {message}"
    )
    if suffix:
        line += f" <dim>{suffix}</dim>"
    line += "\n"
    if record["exception"]:
        line += "{exception}\n"
    return line


class _InterceptHandler(logging.Handler):
    """Route stdlib records (uvicorn, asyncpg) through loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    *,
    is_development: bool = False,
) -> None:
    """Replace loguru's default sink with the service's stdout sink.

    JSON is used unless ``log_format`` is ``"text"`` or the service runs in
    development.
    """
    logger.remove()
    if log_format == "json" and not is_development:
        logger.add(
            sys.stdout,
            format=_json_line,
            level=log_level.upper(),
            colorize=False,
            backtrace=False,
            diagnose=False,
        )
    else:
        logger.add(
            sys.stdout,
            format=_text_line,
            level=log_level.upper(),
            colorize=True,
            backtrace=True,
            diagnose=is_development,
        )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    """Loguru logger bound to ``name`` (typically ``__name__``)."""
    return logger.bind(name=name)


__all__ = [
    "bind_context",
    "clear_context",
    "current_context",
    "get_logger",
    "setup_logging",
]
