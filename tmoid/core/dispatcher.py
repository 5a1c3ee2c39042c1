"""
Runs the caller's verify callback and turns its verdict into an outcome.

The callback is invoked exactly once per attempt, in one of two call shapes
fixed when the strategy is built:

    verify(token, expiry, identity_id, [scope,] done)
    verify(request, token, expiry, identity_id, [scope,] done)

It may be a plain function or a coroutine function, and it reports back by
calling done(error, user, info) once. done may be called from another
thread; only the first call counts.
"""

import asyncio
import inspect
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any

from tmoid.core.config import ProviderConfig
from tmoid.core.domain import AuthError, AuthFail, AuthOutcome, AuthSuccess, TokenGrant
from tmoid.core.exceptions import ConfigurationError, NoTokenIssued, VerifierFault
from tmoid.core.ports import IncomingRequest, VerifyCallback


logger = logging.getLogger(__name__)


class VerifyContinuation:
    """The `done` callable handed to the verify callback."""

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self._loop = loop
        self._future: asyncio.Future = loop.create_future()
        self._lock = threading.Lock()
        self._called = False

    def __call__(self, error: Any = None, user: Any = None, info: Any = None) -> None:
        with self._lock:
            if self._called:
                logger.warning("Verify callback called done() more than once, ignoring")
                return
            self._called = True

        try:
            self._loop.call_soon_threadsafe(self._resolve, (error, user, info))
        except RuntimeError:
            # Loop already closed: the attempt ended before done() arrived
            logger.warning("done() called after the authentication attempt ended")

    def _resolve(self, verdict: tuple[Any, Any, Any]) -> None:
        if not self._future.done():
            self._future.set_result(verdict)

    async def wait(self, timeout: float | None = None) -> tuple[Any, Any, Any]:
        """Wait for the verdict; raises asyncio.TimeoutError after timeout seconds."""
        return await asyncio.wait_for(self._future, timeout=timeout)


class BoundVerifier(ABC):
    """A verify callback bound to one call shape."""

    def __init__(self, verify: VerifyCallback, pass_scope: bool = False):
        self._verify = verify
        self._pass_scope = pass_scope

    def _grant_args(self, grant: TokenGrant) -> list[Any]:
        args: list[Any] = [grant.access_token, grant.expires_in, grant.identity_id]
        if self._pass_scope:
            args.append(grant.scope)
        return args

    @abstractmethod
    def invoke(
        self,
        request: IncomingRequest | None,
        grant: TokenGrant,
        done: VerifyContinuation,
    ) -> Any:
        """Call the verify callback; returns whatever it returns (maybe awaitable)."""
        ...


class TokenVerifier(BoundVerifier):
    """verify(token, expiry, identity_id, [scope,] done)"""

    def invoke(self, request, grant, done):
        return self._verify(*self._grant_args(grant), done)


class RequestTokenVerifier(BoundVerifier):
    """verify(request, token, expiry, identity_id, [scope,] done)"""

    def invoke(self, request, grant, done):
        return self._verify(request, *self._grant_args(grant), done)


def bind_verifier(verify: VerifyCallback, config: ProviderConfig) -> BoundVerifier:
    """
    Select the call shape for a verify callback once, at construction.

    Raises:
        ConfigurationError: If verify is not callable
    """
    if verify is None or not callable(verify):
        raise ConfigurationError("TmoidStrategy requires a verify callback")

    if config.pass_req_to_callback:
        return RequestTokenVerifier(verify, pass_scope=config.pass_scope_to_callback)
    return TokenVerifier(verify, pass_scope=config.pass_scope_to_callback)


def _fail_reason(info: Any) -> str | None:
    if isinstance(info, dict):
        message = info.get("message")
        return str(message) if message is not None else None
    if isinstance(info, str):
        return info
    return None


def verdict_to_outcome(
    error: Any, user: Any, info: Any, grant: TokenGrant
) -> AuthOutcome:
    """Map done(error, user, info) to an outcome."""
    if error:
        return AuthError(cause=error)

    if not user:
        if info is None and not grant.has_token:
            no_token = NoTokenIssued()
            return AuthFail(
                reason=no_token.message,
                status_code=no_token.status_code,
                cause=no_token,
            )
        return AuthFail(reason=_fail_reason(info), info=info)

    return AuthSuccess(user=user, info=info)


async def dispatch_verification(
    verifier: BoundVerifier,
    grant: TokenGrant,
    request: IncomingRequest | None = None,
    verify_timeout: float | None = None,
) -> AuthOutcome:
    """
    Invoke the verify callback once and wait for its verdict.

    Any exception raised by the callback (synchronously, or from an async
    callback) becomes an AuthError carrying that exception. A callback that
    has not called done() after verify_timeout seconds yields an AuthError
    with a VerifierFault.
    """
    done = VerifyContinuation(asyncio.get_running_loop())

    try:
        result = verifier.invoke(request, grant, done)
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        logger.error(f"Verify callback raised: {e!r}", exc_info=True)
        return AuthError(cause=e)

    try:
        error, user, info = await done.wait(verify_timeout)
    except asyncio.TimeoutError:
        logger.error(f"Verify callback did not call done() within {verify_timeout}s")
        return AuthError(
            cause=VerifierFault(
                f"Verify callback did not complete within {verify_timeout}s"
            )
        )

    return verdict_to_outcome(error, user, info, grant)
