"""Linking use cases."""

from .connect_wallet import ConnectWalletUseCase
from .create_challenge import CreateChallengeUseCase
from .link_farcaster import LinkFarcasterUseCase
from .link_wallet import LinkWalletUseCase

__all__ = [
    "ConnectWalletUseCase",
    "CreateChallengeUseCase",
    "LinkFarcasterUseCase",
    "LinkWalletUseCase",
]
