"""Infrastructure providers."""

# Import bases
from .neynar import NeynarProvider
from .persistence import PersistenceProvider
from .relay import RelayProvider
from .session_store import SessionStoreProvider
from .wallet import WalletConnectionProvider

# Import implementations (needed for __subclasses__())
from .neynar import ProdNeynarProvider  # noqa: F401
from .persistence import ProdPersistenceProvider  # noqa: F401
from .relay import ProdRelayProvider  # noqa: F401
from .session_store import ProdSessionStoreProvider  # noqa: F401

__all__ = [
    "NeynarProvider",
    "PersistenceProvider",
    "ProdNeynarProvider",
    "ProdPersistenceProvider",
    "ProdRelayProvider",
    "ProdSessionStoreProvider",
    "RelayProvider",
    "SessionStoreProvider",
    "WalletConnectionProvider",
]
