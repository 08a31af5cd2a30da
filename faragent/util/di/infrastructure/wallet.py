"""Wallet provider DI (concrete, not mockable)."""

from dishka import Scope, provide

from faragent.adapter.wallet.provider import JsonRpcWalletProvider
from faragent.config import Settings
from faragent.domain.service import WalletProvider
from faragent.util.di.base import ProviderBase


class WalletConnectionProvider(ProviderBase):
    """Provides the wallet providers available to server-side connects."""

    @provide(scope=Scope.APP)
    def get_wallet_providers(self, settings: Settings) -> list[WalletProvider]:
        """Provide configured EIP-1193 providers, empty when none is configured."""
        if not settings.wallet.signer_url:
            return []
        return [
            JsonRpcWalletProvider(
                url=settings.wallet.signer_url,
                name=settings.wallet.signer_type,
            )
        ]
