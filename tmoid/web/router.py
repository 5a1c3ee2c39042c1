"""
T-Mobile ID login endpoints for the example application.

- GET /auth/tmoid - Send the user to the T-Mobile ID login page
- GET /auth/tmoid/callback - Exchange the code and log the user in
- GET /login - Login status (and the last login error)
- GET /profile - The logged-in user
"""

import logging
from urllib.parse import urlencode

from authlib.common.security import generate_token
from fastapi import APIRouter, Request, status
from fastapi.responses import RedirectResponse

from tmoid.core.domain import AuthError, AuthFail, AuthSuccess
from tmoid.core.request_builder import build_authorization_url
from tmoid.core.exceptions import VerifierFault
from tmoid.web.dependencies import (
    SESSION_STATE_KEY,
    SESSION_USER_KEY,
    Config,
    CurrentUser,
    Repository,
    Strategy,
)


logger = logging.getLogger(__name__)

STATE_LENGTH = 30

router = APIRouter(tags=["tmoid"])


class LoginError(Exception):
    """Raised when an authentication attempt ends in an internal error."""

    def __init__(self, cause: object):
        super().__init__(f"Authentication error: {cause}")
        self.cause = cause


@router.get("/auth/tmoid")
async def start_login(request: Request, config: Config, strategy: Strategy):
    """
    Start the T-Mobile ID login.

    Redirects to the authorization server with the configured scopes and a
    fresh state value, kept in the session until the callback.
    """
    state = generate_token(STATE_LENGTH)
    request.session[SESSION_STATE_KEY] = state
    url = build_authorization_url(
        strategy.config,
        scope=config.scopes,
        state=state,
        access_type="ONLINE",
    )
    logger.info("Redirecting to T-Mobile ID authorization server")
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


@router.get("/auth/tmoid/callback")
async def login_callback(request: Request, strategy: Strategy):
    """
    Handle the redirect back from T-Mobile ID.

    Success stores the user in the session and redirects to /profile.
    Failure redirects to /login with the reason. An internal error is
    raised as LoginError and rendered as 500 by the app's handler.

    A callback whose state does not match the one issued by /auth/tmoid is
    rejected before any code exchange.
    """
    expected_state = request.session.pop(SESSION_STATE_KEY, None)
    if not expected_state or request.query_params.get("state") != expected_state:
        logger.warning("Login callback with missing or mismatched state")
        return _login_failed(request, "Invalid login state")

    outcome = await strategy.authenticate(request)

    if isinstance(outcome, AuthSuccess):
        request.session[SESSION_USER_KEY] = outcome.user.tmobile_id
        return RedirectResponse(url="/profile", status_code=status.HTTP_302_FOUND)

    if isinstance(outcome, AuthFail):
        return _login_failed(request, outcome.reason or "Login failed")

    if isinstance(outcome, AuthError):
        raise LoginError(outcome.cause)

    raise LoginError(VerifierFault(f"Unexpected outcome: {outcome!r}"))


def _login_failed(request: Request, reason: str) -> RedirectResponse:
    request.session.pop(SESSION_USER_KEY, None)
    query = urlencode({"error": reason})
    return RedirectResponse(url=f"/login?{query}", status_code=status.HTTP_302_FOUND)


@router.get("/login")
async def login(request: Request, repository: Repository, error: str | None = None):
    """Login status for the current session."""
    user = None
    tmobile_id = request.session.get(SESSION_USER_KEY)
    if tmobile_id:
        user = await repository.get(tmobile_id)

    return {
        "user": user.model_dump(include={"tmobile_id"}) if user else None,
        "error": error,
        "login_url": "/auth/tmoid",
    }


@router.get("/profile")
async def profile(user: CurrentUser):
    """Profile of the logged-in user."""
    return {
        "status": "success",
        "user": user.model_dump(include={"tmobile_id", "scope", "created_at"}),
    }


@router.post("/logout")
async def logout(request: Request):
    """Clear the session."""
    request.session.pop(SESSION_USER_KEY, None)
    return RedirectResponse(url="/login", status_code=status.HTTP_302_FOUND)
