"""Identity and access guard.

Every state-mutating operation resolves its caller through
``IdentityGuard.authenticate`` before touching any row.
"""

from __future__ import annotations

import hmac
from typing import TYPE_CHECKING

from recipeshare.core.exceptions import AuthorizationError
from recipeshare.observability.logging import get_logger


if TYPE_CHECKING:
    from asyncpg import Connection

    from recipeshare.database.repositories.users import UserRepository
    from recipeshare.schemas.user import AuthInfo

logger = get_logger(__name__)


class IdentityGuard:
    """Resolves a claimed ``AuthInfo`` to an active user id. Never mutates."""

    def __init__(self, users: UserRepository) -> None:
        self._users = users

    async def authenticate(
        self,
        auth: AuthInfo | None,
        conn: Connection | None = None,
    ) -> int:
        """Return the caller's user id.

        Raises:
            AuthorizationError: If the identity is missing or malformed, the
                user is unknown or deleted, or the credential does not match.
        """
        if auth is None:
            raise self._deny("missing identity")
        if auth.author_id <= 0:
            raise self._deny("invalid id", author_id=auth.author_id)
        if not auth.password or not auth.password.strip():
            raise self._deny("blank credential", author_id=auth.author_id)

        row = await self._users.get_identity(auth.author_id, conn)
        if row is None:
            raise self._deny("unknown user", author_id=auth.author_id)
        if row["is_deleted"]:
            raise self._deny("inactive user", author_id=auth.author_id)

        stored = row["credential"] or ""
        if not hmac.compare_digest(stored.encode(), auth.password.encode()):
            raise self._deny("credential mismatch", author_id=auth.author_id)

        return row["id"]

    async def login(self, auth: AuthInfo | None) -> int:
        """Read-only credential check exposed to callers."""
        user_id = await self.authenticate(auth)
        logger.info("User logged in", author_id=user_id)
        return user_id

    @staticmethod
    def _deny(reason: str, **context: object) -> AuthorizationError:
        logger.warning("Authentication rejected", reason=reason, **context)
        return AuthorizationError("Invalid credentials")
