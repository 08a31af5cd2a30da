"""Neynar infrastructure providers."""

from dishka import Scope, provide

from faragent.adapter.neynar.client import RealNeynarClient
from faragent.config import Settings
from faragent.domain.service import SignerClient
from faragent.util.di.base import ProviderBase


class NeynarProvider(ProviderBase):
    """Neynar component base."""

    __mock_component__ = "neynar"


class ProdNeynarProvider(NeynarProvider):
    """Production Neynar provider."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_signer_client(self, settings: Settings) -> SignerClient:
        """Provide Neynar signer client."""
        return RealNeynarClient(
            api_key=settings.neynar.api_key,
            base_url=settings.neynar.base_url,
            timeout=settings.neynar.timeout,
        )
