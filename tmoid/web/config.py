"""
Configuration for the example web application.

Loaded from environment variables and validated at startup. The strategy
itself never reads the environment; this module turns the environment into
a ProviderConfig.
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from tmoid.core.config import DEFAULT_TIMEOUT, ProviderConfig
from tmoid.core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)

DEFAULT_TOKEN_HOST = "token.tmus.net"
DEFAULT_TOKEN_PATH = "/oauth2/v1/token"
DEFAULT_AUTHORIZATION_URL = "https://auth.tmus.net/oauth2/v1/auth"
DEFAULT_SCOPE = "TMO_ID_profile,associated_lines,billing_information,entitlements"

# T-Mobile ID expects a comma separated scope list
SCOPE_SEPARATOR = ","


@dataclass
class WebConfig:
    """
    Settings for the example app.

    Required environment variables:
    - TMOID_CLIENT_ID, TMOID_CLIENT_SECRET: T-Mobile provided credentials
    - TMOID_REDIRECT_URI: Registered callback URL
    - SESSION_SECRET_KEY: Secret for signing session cookies

    Optional:
    - TMOID_TOKEN_HOST, TMOID_TOKEN_PATH, TMOID_AUTHORIZATION_URL
    - TMOID_SCOPE: Comma separated scopes
    - TMOID_TIMEOUT: Token endpoint timeout in seconds
    - TMOID_VERIFY_TLS: "false" only for test environments
    """

    client_id: str | None
    client_secret: str | None
    redirect_uri: str | None
    session_secret_key: str | None
    token_host: str = DEFAULT_TOKEN_HOST
    token_path: str = DEFAULT_TOKEN_PATH
    authorization_url: str = DEFAULT_AUTHORIZATION_URL
    scope: str = DEFAULT_SCOPE
    timeout: float = DEFAULT_TIMEOUT
    verify_tls: bool = True

    @classmethod
    def from_env(cls) -> "WebConfig":
        """Load configuration from environment variables."""
        return cls(
            client_id=os.getenv("TMOID_CLIENT_ID"),
            client_secret=os.getenv("TMOID_CLIENT_SECRET"),
            redirect_uri=os.getenv("TMOID_REDIRECT_URI"),
            session_secret_key=os.getenv("SESSION_SECRET_KEY"),
            token_host=os.getenv("TMOID_TOKEN_HOST", DEFAULT_TOKEN_HOST),
            token_path=os.getenv("TMOID_TOKEN_PATH", DEFAULT_TOKEN_PATH),
            authorization_url=os.getenv(
                "TMOID_AUTHORIZATION_URL", DEFAULT_AUTHORIZATION_URL
            ),
            scope=os.getenv("TMOID_SCOPE", DEFAULT_SCOPE),
            timeout=float(os.getenv("TMOID_TIMEOUT", str(DEFAULT_TIMEOUT))),
            verify_tls=os.getenv("TMOID_VERIFY_TLS", "true").lower() != "false",
        )

    @property
    def scopes(self) -> list[str]:
        return [s.strip() for s in self.scope.split(SCOPE_SEPARATOR) if s.strip()]

    def validate(self) -> ProviderConfig:
        """
        Validate the configuration and return the strategy's ProviderConfig.

        Raises:
            ConfigurationError: If a required setting is missing or invalid
        """
        if not self.session_secret_key:
            raise ConfigurationError(
                "SESSION_SECRET_KEY environment variable is required"
            )
        return self.to_provider_config()

    def to_provider_config(self) -> ProviderConfig:
        """Build the strategy's ProviderConfig; raises ConfigurationError if incomplete."""
        return ProviderConfig(
            token_host=self.token_host,
            token_path=self.token_path,
            client_id=self.client_id or "",
            client_secret=self.client_secret or "",
            redirect_uri=self.redirect_uri or "",
            authorization_url=self.authorization_url,
            pass_req_to_callback=True,
            pass_scope_to_callback=True,
            scope_separator=SCOPE_SEPARATOR,
            timeout=self.timeout,
            verify_tls=self.verify_tls,
        )


@lru_cache()
def get_web_config() -> WebConfig:
    """Get web configuration singleton."""
    return WebConfig.from_env()
