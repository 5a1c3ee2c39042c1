"""
Exchange a T-Mobile ID authorization code by hand.

Reads TMOID_* settings from the environment or a .env file, runs one
authentication attempt for the given code and prints the outcome.

    python scripts/exchange_code.py iz22UVLGClrwzoZyais8
    python scripts/exchange_code.py --auth-url
"""

import argparse
import asyncio

from dotenv import load_dotenv

from tmoid.core.domain import AuthError, AuthFail, AuthSuccess
from tmoid.core.request_builder import build_authorization_url
from tmoid.core.strategy import TmoidStrategy
from tmoid.logging_config import setup_global_logging
from tmoid.web.config import WebConfig

# Load environment variables from .env file
load_dotenv()


class QueryRequest:
    """Minimal incoming request carrying only a query string."""

    def __init__(self, **query: str):
        self.query_params = query


def print_verify(request, token, expiry, tmobile_id, scope, done):
    print(f"access_token: {token}")
    print(f"expires_in:   {expiry}")
    print(f"tmobileid:    {tmobile_id}")
    print(f"scope:        {scope}")
    done(None, tmobile_id or False, None)


async def run(code: str, token_host: str | None) -> int:
    config = WebConfig.from_env().to_provider_config()
    strategy = TmoidStrategy(config, print_verify)

    outcome = await strategy.authenticate(QueryRequest(code=code), token_host=token_host)

    if isinstance(outcome, AuthSuccess):
        print(f"Success: {outcome.user}")
        return 0
    if isinstance(outcome, AuthFail):
        print(f"Failed ({outcome.status_code}): {outcome.reason}")
        return 1
    if isinstance(outcome, AuthError):
        print(f"Error: {outcome.cause!r}")
    return 2


def main():
    parser = argparse.ArgumentParser(description="Exchange a T-Mobile ID code.")
    parser.add_argument("code", nargs="?", help="Authorization code from the callback.")
    parser.add_argument("--token-host", help="Override the token endpoint hostname.")
    parser.add_argument(
        "--auth-url",
        action="store_true",
        help="Print the authorization URL to obtain a code and exit.",
    )
    args = parser.parse_args()

    setup_global_logging()
    web_config = WebConfig.from_env()

    if args.auth_url:
        print(
            build_authorization_url(
                web_config.to_provider_config(),
                scope=web_config.scopes,
                access_type="ONLINE",
            )
        )
        return

    if not args.code:
        parser.error("code is required unless --auth-url is given")

    raise SystemExit(asyncio.run(run(args.code, args.token_host)))


if __name__ == "__main__":
    main()
