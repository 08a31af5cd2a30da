"""Session Store infrastructure providers."""

from dishka import Scope, provide

from faragent.adapter.supabase.auth import GoTrueSessionStore
from faragent.config import SessionStoreSettings
from faragent.domain.service import SessionStore
from faragent.util.di.base import ProviderBase


class SessionStoreProvider(ProviderBase):
    """Session Store component base."""

    __mock_component__ = "session_store"


class ProdSessionStoreProvider(SessionStoreProvider):
    """Production Session Store provider (Supabase Auth)."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_session_store(self, settings: SessionStoreSettings) -> SessionStore:
        """Provide the hosted auth client.

        Returns:
            GoTrue session store
        """
        return GoTrueSessionStore(
            base_url=settings.url,
            anon_key=settings.anon_key,
            service_role_key=settings.service_role_key,
            timeout=settings.timeout,
        )
