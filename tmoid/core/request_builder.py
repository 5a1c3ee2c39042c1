"""
Builds the requests sent to the T-Mobile ID servers.

The token exchange wire contract: POST to
https://{token_host}{token_path}?grant_type=...&code=...&redirect_uri=...
with HTTP Basic credentials client_id:client_secret and a
form-urlencoded content type.
"""

import logging
from collections.abc import Iterable
from typing import Any

from authlib.oauth2.rfc6749.parameters import prepare_grant_uri

from tmoid.core.config import ProviderConfig, check_token_host
from tmoid.core.domain import ExchangeRequest
from tmoid.core.exceptions import ConfigurationError, MissingCodeFailure


logger = logging.getLogger(__name__)


def build_exchange_request(
    code: str | None,
    config: ProviderConfig,
    token_host: str | None = None,
) -> ExchangeRequest:
    """
    Turn an authorization code into a token-exchange request.

    Args:
        code: Authorization code from the callback query string
        config: Provider configuration
        token_host: Optional hostname overriding config.token_host for this call

    Returns:
        A new ExchangeRequest

    Raises:
        MissingCodeFailure: If code is empty or absent
        ConfigurationError: If token_host is not a bare hostname
    """
    if not code:
        raise MissingCodeFailure()

    params = (
        ("grant_type", config.grant_type),
        ("code", code),
        ("redirect_uri", config.redirect_uri),
    )

    host = token_host or config.token_host
    if token_host:
        check_token_host(token_host)
        logger.debug(f"Using token host override: {token_host}")

    return ExchangeRequest(
        host=host,
        port=config.token_port,
        path=config.token_path,
        params=params,
        client_id=config.client_id,
        client_secret=config.client_secret,
    )


def join_scope(scope: str | Iterable[str] | None, separator: str) -> str | None:
    """Join a list of scopes with the provider's separator."""
    if scope is None:
        return None
    if isinstance(scope, str):
        return scope
    return separator.join(scope)


def build_authorization_url(
    config: ProviderConfig,
    scope: str | Iterable[str] | None = None,
    state: str | None = None,
    **extra: Any,
) -> str:
    """
    Build the URL that sends the user to the authorization server.

    Args:
        config: Provider configuration (authorization_url must be set)
        scope: Scope string or list, joined with config.scope_separator
        state: Optional opaque state echoed back on the callback
        **extra: Additional query parameters (e.g. access_type="ONLINE")

    Returns:
        Authorization URL with response_type=code

    Raises:
        ConfigurationError: If no authorization_url is configured
    """
    if not config.authorization_url:
        raise ConfigurationError("An authorization URL is required to start login")

    return prepare_grant_uri(
        config.authorization_url,
        client_id=config.client_id,
        response_type="code",
        redirect_uri=config.redirect_uri,
        scope=join_scope(scope, config.scope_separator),
        state=state,
        **extra,
    )
