"""Core DI providers (non-mockable)."""

from dishka import Scope, provide

from faragent.adapter.farcaster.signin import PollPolicy
from faragent.config import RelaySettings, SessionStoreSettings, Settings
from faragent.util.di.base import ProviderBase


class ProdConfigProvider(ProviderBase):
    """Production config provider - concrete, no mocks needed.

    Settings are loaded from environment variables and .env file automatically.
    """

    @provide(scope=Scope.APP)
    def provide_settings(self) -> Settings:
        """Provide application settings from environment."""
        return Settings()

    @provide(scope=Scope.APP)
    def provide_session_store_settings(self, settings: Settings) -> SessionStoreSettings:
        """Provide session store settings."""
        return settings.session_store

    @provide(scope=Scope.APP)
    def provide_relay_settings(self, settings: Settings) -> RelaySettings:
        """Provide relay settings."""
        return settings.relay

    @provide(scope=Scope.APP)
    def provide_poll_policy(self, relay_settings: RelaySettings) -> PollPolicy:
        """Provide the relay polling policy."""
        return PollPolicy.from_settings(relay_settings)
