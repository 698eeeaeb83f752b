"""
Tests for the httpx-backed transport.
"""

import json

import httpx
import pytest

from fcm_bridge.models.domain import APNSEnvironment, AppMetadata, ExchangeConfig
from fcm_bridge.services.app_metadata import StaticAppMetadataProvider
from fcm_bridge.services.token_exchange import TokenExchangeService, build_request
from fcm_bridge.services.transport import HttpxTransport


def _request():
    config = ExchangeConfig(api_key="server-key", environment=APNSEnvironment.DEVELOPMENT)
    return build_request(config, "apns-token", AppMetadata(bundle_identifier="com.example.app"))


class TestHttpxTransport:
    """Tests for HttpxTransport.perform."""

    @pytest.mark.asyncio
    async def test_sends_request_as_built(self):
        """Method, URL, headers and body reach the wire unchanged."""
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"results": []})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            transport = HttpxTransport(http_client=client)
            await transport.perform(_request())

        sent = captured[0]
        assert sent.method == "POST"
        assert str(sent.url) == "https://iid.googleapis.com/iid/v1:batchImport"
        assert sent.headers["Authorization"] == "key=server-key"
        assert sent.headers["Content-Type"] == "application/json"
        assert json.loads(sent.content) == {
            "application": "com.example.app",
            "sandbox": True,
            "apns_tokens": ["apns-token"],
        }

    @pytest.mark.asyncio
    async def test_response_mapped_to_reply(self):
        """Status code and body are reported."""
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(401, text="denied"))
        )
        transport = HttpxTransport(http_client=client)

        reply = await transport.perform(_request())

        assert reply.status_code == 401
        assert reply.body == b"denied"
        assert reply.error is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_empty_body_is_none(self):
        """An empty response body is reported as absent."""
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(204))
        )
        transport = HttpxTransport(http_client=client)

        reply = await transport.perform(_request())

        assert reply.status_code == 204
        assert reply.body is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_network_error_reported_not_raised(self):
        """httpx errors become TransportReply.error."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("connect timed out", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        transport = HttpxTransport(http_client=client)

        reply = await transport.perform(_request())

        assert isinstance(reply.error, httpx.ConnectTimeout)
        assert reply.status_code is None
        assert reply.body is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self):
        """close() does not close a client owned by the caller."""
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200))
        )
        transport = HttpxTransport(http_client=client)

        await transport.close()

        assert client.is_closed is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_close_owned_client(self):
        """close() closes a lazily created client."""
        transport = HttpxTransport(timeout=5.0)
        client = transport.http_client

        await transport.close()

        assert client.is_closed is True
        assert client.timeout.read == 5.0


class TestEndToEnd:
    """Service plus httpx transport against a mocked endpoint."""

    @pytest.mark.asyncio
    async def test_exchange_over_http(self):
        """A 200 batchImport reply yields the registration token."""

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "results": [
                        {
                            "apns_token": body["apns_tokens"][0],
                            "status": "OK",
                            "registration_token": "fcm-abc123",
                        }
                    ]
                },
            )

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        service = TokenExchangeService(
            config=ExchangeConfig(api_key="server-key", environment=APNSEnvironment.PRODUCTION),
            transport=HttpxTransport(http_client=client),
            metadata_provider=StaticAppMetadataProvider(AppMetadata(bundle_identifier="com.x")),
            send_user_agent=False,
        )

        async with service:
            outcome = await service.exchange("apns-token")

        assert outcome.token == "fcm-abc123"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_timeout_over_http(self):
        """A read timeout surfaces as transport_failure."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        service = TokenExchangeService(
            config=ExchangeConfig(api_key="server-key", environment=APNSEnvironment.PRODUCTION),
            transport=HttpxTransport(http_client=client),
        )

        outcome = await service.exchange("apns-token")

        assert outcome.label == "transport_failure"
        await client.aclose()
