"""
Verify callback used by the example application.
"""

import logging
from typing import Any

from fastapi import Request

from tmoid.core.ports import Done
from tmoid.web.users import InMemoryUserRepository


logger = logging.getLogger(__name__)


def make_verify(repository: InMemoryUserRepository):
    """
    Build the example app's verify callback.

    The strategy is configured with pass_req_to_callback and
    pass_scope_to_callback, so the callback receives the request and scope.
    A login without a token is rejected; otherwise the user is created or
    updated with the new token and accepted.
    """

    async def verify(
        request: Request,
        token: str | None,
        expiry: int | None,
        tmobile_id: str | None,
        scope: str | None,
        done: Done,
    ) -> None:
        if not token:
            # No token could be retrieved from the server
            return done(None, False, {"message": "No token retrieved"})
        if not tmobile_id:
            logger.warning("Token response carried a token but no T-Mobile ID")
            return done(None, False, {"message": "No T-Mobile ID in token response"})

        user = await repository.upsert_token(
            tmobile_id, access_token=token, expires_in=expiry, scope=scope
        )
        info: dict[str, Any] = {"message": "Logged in with T-Mobile ID"}
        done(None, user, info)

    return verify
