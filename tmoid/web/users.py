"""
User model and in-memory repository for the example application.

Persistence is the application's concern, not the strategy's. This
repository only exists so the example verify callback has somewhere to put
the users it resolves.
"""

import asyncio
import logging
from datetime import datetime, UTC

from pydantic import BaseModel, ConfigDict, Field


logger = logging.getLogger(__name__)


class User(BaseModel):
    """A user identified by their T-Mobile ID."""

    tmobile_id: str = Field(description="T-Mobile ID (primary key)")
    access_token: str | None = Field(
        default=None, description="Most recent T-Mobile access token"
    )
    expires_in: int | None = Field(
        default=None, description="Lifetime of access_token in seconds"
    )
    scope: str | None = Field(default=None, description="Granted scopes")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="First login",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Last login",
    )

    model_config = ConfigDict(extra="forbid")


class InMemoryUserRepository:
    """
    In-memory user store.

    Safe to share between concurrent requests on one event loop.
    """

    def __init__(self):
        self._users: dict[str, User] = {}
        self._lock = asyncio.Lock()

    async def get(self, tmobile_id: str) -> User | None:
        """Get a user by T-Mobile ID."""
        return self._users.get(tmobile_id)

    async def upsert_token(
        self,
        tmobile_id: str,
        access_token: str,
        expires_in: int | None = None,
        scope: str | None = None,
    ) -> User:
        """
        Create the user if needed and record their latest access token.

        Args:
            tmobile_id: T-Mobile ID from the token response
            access_token: Access token issued for this login
            expires_in: Token lifetime in seconds
            scope: Granted scopes

        Returns:
            The stored user
        """
        async with self._lock:
            existing = self._users.get(tmobile_id)
            if existing is None:
                user = User(
                    tmobile_id=tmobile_id,
                    access_token=access_token,
                    expires_in=expires_in,
                    scope=scope,
                )
                logger.info(f"Created user for T-Mobile ID {tmobile_id}")
            else:
                user = existing.model_copy(
                    update={
                        "access_token": access_token,
                        "expires_in": expires_in,
                        "scope": scope,
                        "updated_at": datetime.now(UTC),
                    }
                )
            self._users[tmobile_id] = user
            return user
