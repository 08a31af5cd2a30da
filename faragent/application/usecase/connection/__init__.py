"""Connection management use cases."""

from .disconnect_farcaster import DisconnectFarcasterUseCase
from .get_connections import GetConnectionsUseCase
from .provision_signer import ProvisionSignerUseCase
from .unlink_wallet import UnlinkWalletUseCase

__all__ = [
    "DisconnectFarcasterUseCase",
    "GetConnectionsUseCase",
    "ProvisionSignerUseCase",
    "UnlinkWalletUseCase",
]
