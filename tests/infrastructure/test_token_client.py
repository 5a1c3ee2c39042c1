"""
Unit tests for the token endpoint transport.
"""

import base64
from unittest.mock import patch

import httpx
import pytest
from respx import MockRouter

from tmoid.core.domain import ExchangeRequest
from tmoid.core.exceptions import ConfigurationError, TransportFailure
from tmoid.core.request_builder import build_exchange_request
from tmoid.infrastructure.token_client import HttpxTokenTransport
from tests.conftest import TOKEN_URL


@pytest.mark.asyncio
async def test_exchange_sends_wire_request(respx_mock: MockRouter, provider_config):
    """
    Test exchange posts the params in the query string with Basic auth.
    """
    route = respx_mock.post(TOKEN_URL).mock(
        return_value=httpx.Response(200, json={"access_token": "tok1"})
    )

    reply = await HttpxTokenTransport().exchange(
        build_exchange_request("abc123", provider_config), timeout=2.0
    )

    assert reply.status_code == 200
    assert '"access_token"' in reply.text
    assert route.call_count == 1

    sent = route.calls.last.request
    assert sent.method == "POST"
    assert sent.url.params["grant_type"] == "authorization_code"
    assert sent.url.params["code"] == "abc123"
    assert sent.url.params["redirect_uri"] == provider_config.redirect_uri
    assert sent.headers["content-type"] == "application/x-www-form-urlencoded"
    expected = base64.b64encode(b"client-123:secret-456").decode()
    assert sent.headers["authorization"] == f"Basic {expected}"


@pytest.mark.asyncio
async def test_exchange_returns_error_status_body(
    respx_mock: MockRouter, provider_config
):
    """
    Test a 400 reply is returned for interpretation, not raised.
    """
    respx_mock.post(TOKEN_URL).mock(
        return_value=httpx.Response(
            400, json={"error": "invalid_grant", "error_description": "code expired"}
        )
    )

    reply = await HttpxTokenTransport().exchange(
        build_exchange_request("abc123", provider_config), timeout=2.0
    )

    assert reply.status_code == 400
    assert "invalid_grant" in reply.text


@pytest.mark.asyncio
async def test_exchange_timeout_is_transport_failure(
    respx_mock: MockRouter, provider_config
):
    """
    Test a timeout raises TransportFailure after a single request.
    """
    route = respx_mock.post(TOKEN_URL).mock(
        side_effect=httpx.ReadTimeout("timed out")
    )

    with pytest.raises(TransportFailure, match="timed out") as exc_info:
        await HttpxTokenTransport().exchange(
            build_exchange_request("abc123", provider_config), timeout=0.5
        )

    assert isinstance(exc_info.value.cause, httpx.ReadTimeout)
    assert route.call_count == 1


@pytest.mark.asyncio
async def test_exchange_network_error_is_transport_failure(
    respx_mock: MockRouter, provider_config
):
    """
    Test connection errors (DNS, TLS, refused) raise TransportFailure.
    """
    respx_mock.post(TOKEN_URL).mock(
        side_effect=httpx.ConnectError("[SSL: CERTIFICATE_VERIFY_FAILED]")
    )

    with pytest.raises(TransportFailure, match="Network error") as exc_info:
        await HttpxTokenTransport().exchange(
            build_exchange_request("abc123", provider_config), timeout=2.0
        )

    assert exc_info.value.status_code == 400
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_exchange_uses_injected_client(respx_mock: MockRouter, provider_config):
    """
    Test a shared AsyncClient is used and left open.
    """
    respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(200, json={}))

    async with httpx.AsyncClient() as client:
        transport = HttpxTokenTransport(client=client)
        await transport.exchange(
            build_exchange_request("abc123", provider_config), timeout=2.0
        )

        assert client.is_closed is False


@pytest.mark.asyncio
async def test_exchange_invalid_url_is_transport_failure():
    """
    Test a URL httpx refuses to build raises TransportFailure.
    """
    request = ExchangeRequest(
        host="bad host\x00",
        port=443,
        path="/oauth2/v1/token",
        params=(("code", "abc123"),),
        client_id="client-123",
        client_secret="secret-456",
    )

    with pytest.raises(TransportFailure, match="Invalid token endpoint URL") as exc_info:
        await HttpxTokenTransport().exchange(request, timeout=2.0)

    assert isinstance(exc_info.value.cause, httpx.InvalidURL)


@pytest.mark.asyncio
@pytest.mark.parametrize("verify", [True, False])
async def test_exchange_passes_tls_setting_to_client(
    respx_mock: MockRouter, provider_config, verify
):
    """
    Test the verify flag reaches the per-call AsyncClient.
    """
    respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(200, json={}))

    with patch.object(httpx, "AsyncClient", wraps=httpx.AsyncClient) as client_cls:
        await HttpxTokenTransport().exchange(
            build_exchange_request("abc123", provider_config),
            timeout=2.0,
            verify=verify,
        )

    assert client_cls.call_args.kwargs["verify"] is verify


@pytest.mark.asyncio
@pytest.mark.respx(assert_all_called=False)
async def test_exchange_refuses_non_verifying_injected_client(
    respx_mock: MockRouter, provider_config
):
    """
    Test verification is never silently dropped by an injected client.
    """
    route = respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(200, json={}))

    async with httpx.AsyncClient(verify=False) as client:
        transport = HttpxTokenTransport(client=client, client_verifies_tls=False)

        with pytest.raises(ConfigurationError, match="does not verify"):
            await transport.exchange(
                build_exchange_request("abc123", provider_config),
                timeout=2.0,
                verify=True,
            )

    assert route.call_count == 0


@pytest.mark.asyncio
async def test_exchange_non_verifying_injected_client_when_disabled(
    respx_mock: MockRouter, provider_config
):
    """
    Test a non-verifying client is used when verification is switched off.
    """
    route = respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(200, json={}))

    async with httpx.AsyncClient(verify=False) as client:
        transport = HttpxTokenTransport(client=client, client_verifies_tls=False)
        await transport.exchange(
            build_exchange_request("abc123", provider_config),
            timeout=2.0,
            verify=False,
        )

    assert route.call_count == 1


@pytest.mark.asyncio
async def test_exchange_warns_when_injected_client_keeps_verifying(
    respx_mock: MockRouter, provider_config, caplog
):
    """
    Test disabling verification with a verifying client is logged, not applied.
    """
    respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(200, json={}))

    async with httpx.AsyncClient() as client:
        await HttpxTokenTransport(client=client).exchange(
            build_exchange_request("abc123", provider_config),
            timeout=2.0,
            verify=False,
        )

    assert "still verifies certificates" in caplog.text
