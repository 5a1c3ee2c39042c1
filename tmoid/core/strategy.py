"""
T-Mobile ID authentication strategy.

T-Mobile ID closely follows the OAuth2 authorization code flow. The user is
first sent to the authorization server; after login it redirects back to the
registered redirect URI with a short-lived code:

    https://localhost:3000/auth/tmoid/callback?code=iz22UVLGClrwzoZyais8

TmoidStrategy.authenticate() takes that callback request, exchanges the code
for an access token at the token endpoint and hands the token, its expiry and
the T-Mobile ID of the user to the application's verify callback, which
decides who the user is:

    async def verify(token, expiry, tmobile_id, done):
        if not token:
            return done(None, False)
        user = await users.find_by_tmobile_id(tmobile_id)
        done(None, user)

    strategy = TmoidStrategy(
        ProviderConfig(
            redirect_uri="https://localhost:3000/auth/tmoid/callback",
            token_host="token.tmus.net",
            token_path="/oauth2/v1/token",
            client_id=TMOBILE_CLIENT_ID,
            client_secret=TMOBILE_CLIENT_SECRET,
        ),
        verify,
    )
    outcome = await strategy.authenticate(request)

The result is always one of AuthSuccess, AuthFail or AuthError; failures
along the way are reported, never raised.
"""

import logging
import uuid
from typing import Any

from tmoid.core.config import ProviderConfig
from tmoid.core.dispatcher import bind_verifier, dispatch_verification
from tmoid.core.domain import AuthFail, AuthOutcome, AuthSuccess
from tmoid.core.exceptions import AuthenticationFailure, AuthorizationDenied
from tmoid.core.ports import IncomingRequest, TokenTransport, VerifyCallback
from tmoid.core.request_builder import build_exchange_request
from tmoid.core.response_interpreter import interpret_token_response
from tmoid.infrastructure.token_client import HttpxTokenTransport


logger = logging.getLogger(__name__)


class TmoidStrategy:
    """
    Authorization-code strategy for T-Mobile ID.

    Holds an immutable ProviderConfig and the bound verify callback. Instances
    keep no per-attempt state, so one strategy can serve concurrent requests.
    """

    name = "tmoid"

    def __init__(
        self,
        config: ProviderConfig,
        verify: VerifyCallback,
        transport: TokenTransport | None = None,
    ):
        self.config = config
        self._verifier = bind_verifier(verify, config)
        self._transport = transport or HttpxTokenTransport()

    @classmethod
    def from_options(
        cls,
        verify: VerifyCallback,
        transport: TokenTransport | None = None,
        **options: Any,
    ) -> "TmoidStrategy":
        """Build a strategy from a flat options bundle (see ProviderConfig.from_options)."""
        return cls(ProviderConfig.from_options(**options), verify, transport=transport)

    async def authenticate(
        self,
        request: IncomingRequest,
        token_host: str | None = None,
    ) -> AuthOutcome:
        """
        Authenticate a callback request.

        Args:
            request: Incoming callback request (needs query_params)
            token_host: Optional token hostname overriding the configured one

        Returns:
            AuthSuccess, AuthFail or AuthError

        Raises:
            ConfigurationError: If token_host is not a bare hostname, or the
                transport cannot honour the configured TLS verification
        """
        attempt_id = uuid.uuid4().hex[:12]
        query = request.query_params

        try:
            self._check_authorization_error(query)
            exchange = build_exchange_request(
                query.get("code"), self.config, token_host=token_host
            )

            logger.info(
                "Exchanging authorization code for access token",
                extra={"attempt_id": attempt_id, "token_host": exchange.host},
            )
            reply = await self._transport.exchange(
                exchange,
                timeout=self.config.timeout,
                verify=self.config.verify_tls,
            )

            grant = interpret_token_response(reply.text, self.config.identity_field)
        except AuthenticationFailure as e:
            logger.warning(
                f"Authentication failed: {e.message}",
                extra={
                    "attempt_id": attempt_id,
                    "failure": type(e).__name__,
                    "status_code": e.status_code,
                },
            )
            return AuthFail(reason=e.message, status_code=e.status_code, cause=e)

        outcome = await dispatch_verification(
            self._verifier,
            grant,
            request=request,
            verify_timeout=self.config.verify_timeout,
        )

        logger.info(
            f"Authentication attempt finished: {type(outcome).__name__}",
            extra={
                "attempt_id": attempt_id,
                "identity_id": grant.identity_id,
                "accepted": isinstance(outcome, AuthSuccess),
            },
        )
        return outcome

    @staticmethod
    def _check_authorization_error(query: Any) -> None:
        """The authorization server redirects with ?error=... when the user declines."""
        error = query.get("error")
        if not error:
            return

        message = (
            query.get("error_message")
            or query.get("error_description")
            or error
        )
        if query.get("error_code"):
            message = f"{message} ({query.get('error_code')})"
        raise AuthorizationDenied(message, error=error)
