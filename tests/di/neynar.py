"""Mock Neynar providers for testing."""

from dishka import Scope, provide

from faragent.adapter.neynar.client import MockNeynarClient
from faragent.domain.service import SignerClient
from faragent.util.di.infrastructure.neynar import NeynarProvider


class MockNeynarProvider(NeynarProvider):
    """Mock Neynar provider."""

    __is_mock__ = True

    @provide(scope=Scope.APP)
    def get_signer_client(self) -> SignerClient:
        """Provide mock Neynar client."""
        return MockNeynarClient()
