"""Farcaster relay infrastructure providers."""

from collections.abc import AsyncIterator

from dishka import Scope, provide

from faragent.adapter.farcaster.relay import HttpRelayClient, RelayClient
from faragent.config import RelaySettings
from faragent.util.di.base import ProviderBase


class RelayProvider(ProviderBase):
    """Relay component base."""

    __mock_component__ = "relay"


class ProdRelayProvider(RelayProvider):
    """Production relay provider."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    async def get_relay_client(self, settings: RelaySettings) -> AsyncIterator[RelayClient]:
        """Provide the relay client, closed with the container."""
        client = HttpRelayClient(base_url=settings.url, timeout=settings.request_timeout)
        yield client
        await client.aclose()
