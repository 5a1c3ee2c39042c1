"""
FastAPI dependencies for the example application.

Provides dependency injection for configuration, the user repository and
the T-Mobile ID strategy.
"""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from tmoid.core.strategy import TmoidStrategy
from tmoid.web.config import WebConfig, get_web_config
from tmoid.web.users import InMemoryUserRepository, User
from tmoid.web.verify import make_verify


logger = logging.getLogger(__name__)

SESSION_USER_KEY = "tmobile_id"
SESSION_STATE_KEY = "tmoid_state"


@lru_cache()
def get_user_repository() -> InMemoryUserRepository:
    """Provide the user repository singleton."""
    return InMemoryUserRepository()


@lru_cache()
def get_strategy() -> TmoidStrategy:
    """
    Provide the strategy singleton.

    Built from the environment on first use; raises ConfigurationError if
    the T-Mobile ID settings are incomplete.
    """
    config = get_web_config()
    strategy = TmoidStrategy(
        config.validate(),
        make_verify(get_user_repository()),
    )
    logger.info(
        "T-Mobile ID strategy configured",
        extra={"token_host": config.token_host},
    )
    return strategy


async def get_current_user(
    request: Request,
    repository: Annotated[InMemoryUserRepository, Depends(get_user_repository)],
) -> User:
    """
    Dependency to get the logged-in user from the session.

    Raises:
        HTTPException: 401 if not logged in
    """
    tmobile_id = request.session.get(SESSION_USER_KEY)
    if not tmobile_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    user = await repository.get(tmobile_id)
    if user is None:
        logger.warning(f"Session refers to unknown user {tmobile_id}")
        request.session.pop(SESSION_USER_KEY, None)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user


# Type aliases for cleaner dependency injection
Config = Annotated[WebConfig, Depends(get_web_config)]
Strategy = Annotated[TmoidStrategy, Depends(get_strategy)]
Repository = Annotated[InMemoryUserRepository, Depends(get_user_repository)]
CurrentUser = Annotated[User, Depends(get_current_user)]
