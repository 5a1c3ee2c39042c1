"""
Domain exceptions for the authorization-code flow.

ConfigurationError is the only exception that escapes to callers; it is
raised while a strategy is being built. Everything under
AuthenticationFailure is resolved inside the pipeline into an AuthFail
outcome, carrying its status_code so the web layer can respond.
"""


class TmoidError(Exception):
    """Base exception for the T-Mobile ID strategy."""

    pass


class ConfigurationError(TmoidError, ValueError):
    """Raised at construction time when a required option is missing or invalid."""

    pass


class AuthenticationFailure(TmoidError):
    """
    Base class for failures reported as an AuthFail outcome.

    These are expected, per-attempt conditions (bad code, provider said no,
    network trouble) and are never fatal to the process.
    """

    status_code: int = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class MissingCodeFailure(AuthenticationFailure):
    """No authorization code on the callback request."""

    def __init__(self, message: str = "Missing code"):
        super().__init__(message, status_code=400)


class AuthorizationDenied(AuthenticationFailure):
    """The authorization server redirected back with an error instead of a code."""

    def __init__(self, message: str, error: str | None = None):
        super().__init__(message, status_code=401)
        self.error = error


class TransportFailure(AuthenticationFailure):
    """
    Network, TLS or timeout fault reaching the token endpoint.

    The underlying exception is kept on `cause` (and chained via `from`).
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message, status_code=400)
        self.cause = cause


class ProviderRejection(AuthenticationFailure):
    """The token endpoint answered with a structured error document."""

    def __init__(self, error: str, description: str | None = None):
        super().__init__(description or error, status_code=400)
        self.error = error
        self.description = description


class MalformedResponse(AuthenticationFailure):
    """The token endpoint body could not be read as a token document."""

    def __init__(self, message: str):
        super().__init__(message, status_code=502)


class NoTokenIssued(AuthenticationFailure):
    """The response parsed but carried no access token."""

    def __init__(self, message: str = "No token retrieved"):
        super().__init__(message, status_code=401)


class VerifierFault(TmoidError):
    """The verification callback could not produce a result."""

    pass
