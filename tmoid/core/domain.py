"""
Domain models for the authorization-code exchange.

ExchangeRequest and the outcome types are frozen dataclasses created fresh
for every attempt. TokenGrant is a pydantic model so the token endpoint's
document is validated the same way other API payloads are.
"""

from dataclasses import dataclass, field
from typing import Any, Union

from authlib.common.urls import add_params_to_uri
from pydantic import BaseModel, ConfigDict, Field, field_validator

from tmoid.core.config import token_endpoint_url


FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass(frozen=True)
class ExchangeRequest:
    """A single token-exchange request, built per attempt."""

    host: str
    port: int
    path: str
    params: tuple[tuple[str, str], ...]
    client_id: str
    client_secret: str = field(repr=False)
    method: str = "POST"
    headers: tuple[tuple[str, str], ...] = (("content-type", FORM_CONTENT_TYPE),)

    @property
    def url(self) -> str:
        """Full token URL with the form-encoded parameters as query string."""
        base = token_endpoint_url(self.host, self.port, self.path)
        return add_params_to_uri(base, list(self.params))

    @property
    def basic_auth(self) -> tuple[str, str]:
        """(client_id, client_secret) for HTTP Basic authentication."""
        return self.client_id, self.client_secret

    @property
    def code(self) -> str:
        return dict(self.params)["code"]


class TokenGrant(BaseModel):
    """
    A successful token endpoint response.

    access_token may be None when the provider answered without an error but
    also without a token; the verify callback decides what that means.
    """

    access_token: str | None = Field(default=None, description="OAuth2 access token")
    token_type: str | None = Field(default=None, description="Token type")
    expires_in: int | None = Field(
        default=None, description="Token lifetime in seconds"
    )
    identity_id: str | None = Field(
        default=None, description="Provider identity id (tmobileid)"
    )
    scope: str | None = Field(default=None, description="Granted scopes")

    model_config = ConfigDict(frozen=True)

    @field_validator("identity_id", mode="before")
    @classmethod
    def _stringify_identity(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def has_token(self) -> bool:
        return bool(self.access_token)


@dataclass(frozen=True)
class AuthSuccess:
    """The verify callback accepted the grant and returned a user."""

    user: Any
    info: Any = None


@dataclass(frozen=True)
class AuthFail:
    """
    The attempt was rejected.

    reason is a short human readable message; status_code is the suggested
    HTTP status (None when the verify callback rejected without one).
    """

    reason: str | None = None
    status_code: int | None = None
    info: Any = None
    cause: BaseException | None = None


@dataclass(frozen=True)
class AuthError:
    """An internal fault (verify callback error) ended the attempt."""

    cause: Any


AuthOutcome = Union[AuthSuccess, AuthFail, AuthError]
