"""Mock Session Store providers for testing."""

from dishka import Scope, provide

from faragent.adapter.supabase.auth import InMemorySessionStore
from faragent.domain.service import SessionStore
from faragent.util.di.infrastructure.session_store import SessionStoreProvider


class MockSessionStoreProvider(SessionStoreProvider):
    """Mock Session Store provider using the in-memory store.

    APP scope so that accounts survive across requests of one test container.
    """

    __is_mock__ = True

    @provide(scope=Scope.APP)
    def get_session_store(self) -> SessionStore:
        """Provide in-memory session store."""
        return InMemorySessionStore()
