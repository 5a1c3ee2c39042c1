"""
Provider configuration for the T-Mobile ID strategy.

All values are supplied by the caller; nothing here reads the environment.
A ProviderConfig is validated when it is created and is immutable afterwards,
so a strategy never holds a partially configured provider.
"""

import logging
from dataclasses import dataclass
from typing import Any

from tmoid.core.exceptions import ConfigurationError


logger = logging.getLogger(__name__)

DEFAULT_GRANT_TYPE = "authorization_code"
DEFAULT_IDENTITY_FIELD = "tmobileid"
DEFAULT_TIMEOUT = 5.0

_FORBIDDEN_HOST_CHARS = set("/?#@\\")

# Required option -> human readable name used in error messages
REQUIRED_OPTIONS = {
    "redirect_uri": "redirect URI",
    "token_host": "token hostname",
    "token_path": "token path",
    "client_id": "clientID",
    "client_secret": "clientSecret",
}

# Option names used by the original Node.js strategy
OPTION_ALIASES = {
    "tokenHostname": "token_host",
    "tokenPath": "token_path",
    "clientID": "client_id",
    "clientSecret": "client_secret",
    "passReqToCallback": "pass_req_to_callback",
    "passScopeToCallback": "pass_scope_to_callback",
    "authorizationURL": "authorization_url",
    "scopeSeparator": "scope_separator",
}


@dataclass(frozen=True)
class ProviderConfig:
    """
    Token endpoint, client credentials and callback behaviour for one provider.

    Required: redirect_uri, token_host, token_path, client_id, client_secret.
    token_host is the bare hostname (no scheme, no path), e.g. "token.tmus.net".
    """

    token_host: str
    token_path: str
    client_id: str
    client_secret: str
    redirect_uri: str
    authorization_url: str | None = None
    grant_type: str = DEFAULT_GRANT_TYPE
    pass_req_to_callback: bool = False
    pass_scope_to_callback: bool = False
    scope_separator: str = " "
    identity_field: str = DEFAULT_IDENTITY_FIELD
    token_port: int = 443
    timeout: float = DEFAULT_TIMEOUT
    verify_tls: bool = True
    verify_timeout: float | None = None

    def __post_init__(self) -> None:
        for option, label in REQUIRED_OPTIONS.items():
            if not getattr(self, option):
                raise ConfigurationError(f"TmoidStrategy requires a {label} option")

        if not self.grant_type:
            raise ConfigurationError("grant_type must not be empty")
        check_token_host(self.token_host)
        if not self.token_path.startswith("/"):
            raise ConfigurationError(
                f"token_path must start with '/', got {self.token_path!r}"
            )
        if not 0 < self.token_port < 65536:
            raise ConfigurationError(f"Invalid token_port: {self.token_port}")
        if self.timeout is None or self.timeout <= 0:
            raise ConfigurationError("timeout must be a positive number of seconds")
        if self.verify_timeout is not None and self.verify_timeout <= 0:
            raise ConfigurationError("verify_timeout must be positive when set")
        if not self.scope_separator:
            raise ConfigurationError("scope_separator must not be empty")
        if not self.identity_field:
            raise ConfigurationError("identity_field must not be empty")

        if not self.verify_tls:
            logger.warning(
                "TLS certificate verification is disabled for the token endpoint",
                extra={"token_host": self.token_host},
            )

    @classmethod
    def from_options(cls, **options: Any) -> "ProviderConfig":
        """
        Build a config from a flat options bundle.

        Accepts both snake_case names and the camelCase names of the original
        strategy (tokenHostname, clientID, passReqToCallback, ...).
        Unknown options are rejected.
        """
        normalized: dict[str, Any] = {}
        for key, value in options.items():
            name = OPTION_ALIASES.get(key, key)
            if name in normalized:
                raise ConfigurationError(f"Option given twice: {name}")
            normalized[name] = value

        unknown = set(normalized) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigurationError(f"Unknown options: {sorted(unknown)}")

        # Missing required options get an empty value so __post_init__
        # reports them with the same message as an empty one.
        for option in REQUIRED_OPTIONS:
            normalized.setdefault(option, "")

        return cls(**normalized)


def token_endpoint_url(host: str, port: int, path: str) -> str:
    """Build https://host[:port]/path, omitting the default port."""
    if port == 443:
        return f"https://{host}{path}"
    return f"https://{host}:{port}{path}"


def check_token_host(host: str) -> None:
    """
    Reject anything that is not a bare hostname.

    Raises:
        ConfigurationError: If host carries a scheme, path, query, userinfo,
            whitespace or control characters
    """
    if "://" in host or any(c in _FORBIDDEN_HOST_CHARS for c in host):
        raise ConfigurationError(f"token_host must be a bare hostname, got {host!r}")
    if any(c.isspace() or not c.isprintable() for c in host):
        raise ConfigurationError(
            f"token_host contains whitespace or control characters: {host!r}"
        )
