"""
Client for the T-Mobile ID token endpoint.
"""

import logging

import httpx

from tmoid.core.domain import ExchangeRequest
from tmoid.core.exceptions import ConfigurationError, TransportFailure
from tmoid.core.ports import TokenEndpointReply


logger = logging.getLogger(__name__)


class HttpxTokenTransport:
    """
    Performs the token exchange over HTTPS with httpx.

    One POST per call, no retries. Without an injected client a short-lived
    AsyncClient is opened per call with the requested TLS verification
    setting.

    A shared AsyncClient can be injected to reuse connections. Its TLS
    setting is fixed when it is built, so the caller declares it with
    client_verifies_tls. An exchange that asks for verification is refused
    when the injected client does not verify; certificate checking is never
    switched off behind the configuration's back.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        client_verifies_tls: bool = True,
    ):
        self._client = client
        self._client_verifies_tls = client_verifies_tls
        if client is not None and not client_verifies_tls:
            logger.warning(
                "Injected HTTP client does not verify TLS certificates; "
                "exchanges requiring verification will be refused"
            )

    async def exchange(
        self,
        request: ExchangeRequest,
        *,
        timeout: float,
        verify: bool = True,
    ) -> TokenEndpointReply:
        """
        Send the exchange request and return the raw reply.

        Non-2xx replies are returned as-is: token endpoints report invalid
        grants as 400 with an error document, which the interpreter reads.

        Args:
            request: The exchange request to send
            timeout: Seconds to wait for the round trip
            verify: Validate the server certificate

        Returns:
            TokenEndpointReply with status code and body text

        Raises:
            TransportFailure: On timeout, DNS, connect, TLS or protocol errors,
                or an unusable token URL
            ConfigurationError: If verify is requested but the injected client
                does not verify certificates
        """
        if self._client is not None:
            self._check_client_tls(verify)

        try:
            if self._client is not None:
                response = await self._send(self._client, request, timeout)
            else:
                async with httpx.AsyncClient(verify=verify) as client:
                    response = await self._send(client, request, timeout)
        except httpx.TimeoutException as e:
            logger.warning(
                f"Token endpoint timed out after {timeout}s",
                extra={"token_host": request.host, "error": str(e)},
            )
            raise TransportFailure(
                f"Token endpoint timed out after {timeout}s", cause=e
            ) from e
        except httpx.RequestError as e:
            logger.warning(
                f"Network error contacting token endpoint: {e!r}",
                extra={"token_host": request.host, "error": str(e)},
            )
            raise TransportFailure(
                f"Network error contacting token endpoint: {e}", cause=e
            ) from e
        except httpx.InvalidURL as e:
            logger.warning(
                f"Token endpoint URL is invalid: {e}",
                extra={"token_host": request.host, "error": str(e)},
            )
            raise TransportFailure(f"Invalid token endpoint URL: {e}", cause=e) from e

        logger.debug(
            f"Token endpoint replied with status {response.status_code}",
            extra={"token_host": request.host, "status_code": response.status_code},
        )
        return TokenEndpointReply(status_code=response.status_code, text=response.text)

    def _check_client_tls(self, verify: bool) -> None:
        if verify and not self._client_verifies_tls:
            raise ConfigurationError(
                "TLS verification is required but the injected HTTP client "
                "does not verify certificates"
            )
        if not verify and self._client_verifies_tls:
            logger.warning(
                "TLS verification was disabled for this exchange but the "
                "injected HTTP client still verifies certificates"
            )

    async def _send(
        self, client: httpx.AsyncClient, request: ExchangeRequest, timeout: float
    ) -> httpx.Response:
        return await client.request(
            request.method,
            request.url,
            auth=httpx.BasicAuth(*request.basic_auth),
            headers=dict(request.headers),
            timeout=timeout,
        )
