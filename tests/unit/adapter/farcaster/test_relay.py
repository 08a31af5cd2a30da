"""Unit tests for HttpRelayClient."""

import json

import httpx
import pytest

from faragent.adapter.farcaster.relay import (
    HttpRelayClient,
    RelayAuthorizationError,
    RelayError,
    RelayTransportError,
)


def _client(handler) -> HttpRelayClient:
    return HttpRelayClient(
        base_url="https://relay.test", transport=httpx.MockTransport(handler)
    )


class TestHttpRelayClient:
    """Tests for HttpRelayClient."""

    @pytest.mark.asyncio
    async def test_create_channel(self):
        """Channel creation posts the sign-in URI and domain."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.read())
            return httpx.Response(
                201,
                json={"channelToken": "tok", "url": "https://warpcast/x", "nonce": "n"},
            )

        client = _client(handler)
        channel = await client.create_channel("https://app.test", "app.test")
        await client.aclose()

        assert seen["path"] == "/v1/channel"
        assert seen["body"] == {"siweUri": "https://app.test", "domain": "app.test"}
        assert channel.channel_token == "tok"
        assert channel.url == "https://warpcast/x"

    @pytest.mark.asyncio
    async def test_channel_status_pending_and_completed(self):
        """202 is pending; 200 with state completed carries the payload."""
        responses = [
            httpx.Response(202, json={"state": "pending"}),
            httpx.Response(200, json={"state": "completed", "fid": 1, "username": "a"}),
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer tok"
            return responses.pop(0)

        client = _client(handler)
        pending = await client.channel_status("tok")
        completed = await client.channel_status("tok")
        await client.aclose()

        assert not pending.completed
        assert completed.completed
        assert completed.payload["fid"] == 1

    @pytest.mark.asyncio
    async def test_expired_channel_raises_authorization_error(self):
        """401 means the channel token is no longer valid."""
        client = _client(lambda request: httpx.Response(401))

        with pytest.raises(RelayAuthorizationError):
            await client.channel_status("tok")

    @pytest.mark.asyncio
    async def test_transport_failure_and_reconnect(self):
        """Connection errors raise RelayTransportError; reconnect opens a new client."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection reset")

        client = _client(handler)

        with pytest.raises(RelayTransportError):
            await client.channel_status("tok")
        await client.reconnect()
        with pytest.raises(RelayTransportError):
            await client.channel_status("tok")
        await client.aclose()

        assert client.connections_opened == 2

    @pytest.mark.asyncio
    async def test_server_error_on_create(self):
        """Non-success channel creation raises RelayError with the status."""
        client = _client(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(RelayError) as exc_info:
            await client.create_channel("https://app.test", "app.test")

        assert exc_info.value.status_code == 500
