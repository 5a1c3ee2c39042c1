"""
Shared test configuration and fixtures.
"""

import json
import os
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from tmoid.core.config import ProviderConfig
from tmoid.core.ports import TokenEndpointReply

# Session secret must be present before the app module is imported
with patch.dict(os.environ, {"SESSION_SECRET_KEY": "test-secret"}):
    from tmoid.main import app

client = TestClient(app)

TOKEN_HOST = "token.example.com"
TOKEN_PATH = "/oauth2/v1/token"
TOKEN_URL = f"https://{TOKEN_HOST}{TOKEN_PATH}"
REDIRECT_URI = "https://localhost:3000/auth/tmoid/callback"


class QueryRequest:
    """Stand-in for a framework request; only query_params is used."""

    def __init__(self, **query: str):
        self.query_params = query


class StubTransport:
    """
    TokenTransport returning canned replies and recording every call.

    Pass an exception instance to have exchange() raise it instead.
    """

    def __init__(self, reply: TokenEndpointReply | Exception | None = None):
        self.reply = reply or TokenEndpointReply(200, "{}")
        self.calls = []

    async def exchange(self, request, *, timeout, verify=True):
        self.calls.append({"request": request, "timeout": timeout, "verify": verify})
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


def json_reply(payload: dict, status_code: int = 200) -> TokenEndpointReply:
    """Build a TokenEndpointReply with a JSON body."""
    return TokenEndpointReply(status_code=status_code, text=json.dumps(payload))


@pytest.fixture
def provider_config():
    """Valid provider configuration pointing at a fake token host."""
    return ProviderConfig(
        token_host=TOKEN_HOST,
        token_path=TOKEN_PATH,
        client_id="client-123",
        client_secret="secret-456",
        redirect_uri=REDIRECT_URI,
        authorization_url="https://auth.example.com/oauth2/v1/auth",
        timeout=2.0,
    )


@pytest.fixture
def token_payload():
    """Successful T-Mobile ID token response."""
    return {
        "access_token": "tok1",
        "token_type": "Bearer",
        "expires_in": 3600,
        "tmobileid": "u42",
        "scope": "TMO_ID_profile,entitlements",
    }
