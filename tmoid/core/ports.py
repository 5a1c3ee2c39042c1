"""
Port definitions (interfaces) for the core domain.

Ports define the contracts between the strategy and the things around it:
the incoming request handed over by the web framework, the transport that
talks to the token endpoint, and the caller's verify callback.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Protocol

from tmoid.core.domain import ExchangeRequest


class IncomingRequest(Protocol):
    """
    The callback request as seen by the strategy.

    Only the query parameters are needed. Starlette's Request satisfies this.
    """

    @property
    def query_params(self) -> Mapping[str, str]: ...


@dataclass(frozen=True)
class TokenEndpointReply:
    """Raw reply from the token endpoint, before interpretation."""

    status_code: int
    text: str


class TokenTransport(Protocol):
    """
    Port for performing the token exchange.

    Implemented by infrastructure adapters (e.g., HttpxTokenTransport).
    Implementations issue exactly one request and raise TransportFailure for
    anything that prevents a reply from arriving.
    """

    async def exchange(
        self,
        request: ExchangeRequest,
        *,
        timeout: float,
        verify: bool = True,
    ) -> TokenEndpointReply:
        """
        Send the exchange request.

        Args:
            request: The exchange request to send
            timeout: Seconds to wait for the whole round trip
            verify: Whether to validate the server's TLS certificate

        Returns:
            Status code and body text of the reply

        Raises:
            TransportFailure: On timeout, DNS, connect or TLS errors
        """
        ...


class Done(Protocol):
    """Single-shot continuation handed to the verify callback."""

    def __call__(self, error: Any = None, user: Any = None, info: Any = None) -> None: ...


# verify([request,] token, expiry, identity_id, [scope,] done), sync or async
VerifyCallback = Callable[..., Awaitable[None] | None]
