"""Mock providers for testing."""

from .neynar import MockNeynarProvider
from .persistence import MockPersistenceProvider
from .relay import MockRelayProvider
from .session_store import MockSessionStoreProvider
from .container import build_test_container

__all__ = [
    "MockNeynarProvider",
    "MockPersistenceProvider",
    "MockRelayProvider",
    "MockSessionStoreProvider",
    "build_test_container",
]
