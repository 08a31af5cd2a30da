"""Chain selection for wallet providers (Base mainnet / Base Sepolia)."""

import logging

from faragent.domain.service.signature_service import (
    UNRECOGNIZED_CHAIN,
    ProviderRpcError,
    WalletProvider,
)

logger = logging.getLogger(__name__)

BASE_CHAIN_ID = 8453
BASE_SEPOLIA_CHAIN_ID = 84532

SUPPORTED_CHAIN_IDS = {BASE_CHAIN_ID, BASE_SEPOLIA_CHAIN_ID}

CHAIN_PARAMETERS = {
    BASE_CHAIN_ID: {
        "chainName": "Base",
        "nativeCurrency": {"name": "ETH", "symbol": "ETH", "decimals": 18},
        "rpcUrls": ["https://mainnet.base.org"],
        "blockExplorerUrls": ["https://basescan.org"],
    },
    BASE_SEPOLIA_CHAIN_ID: {
        "chainName": "Base Sepolia",
        "nativeCurrency": {"name": "ETH", "symbol": "ETH", "decimals": 18},
        "rpcUrls": ["https://sepolia.base.org"],
        "blockExplorerUrls": ["https://sepolia.basescan.org"],
    },
}


def is_supported_chain(chain_id: int | None) -> bool:
    return chain_id in SUPPORTED_CHAIN_IDS


async def read_chain_id(provider: WalletProvider) -> int:
    """Current chain of the provider."""
    return int(await provider.request("eth_chainId"), 16)


async def ensure_chain(provider: WalletProvider, chain_id: int = BASE_CHAIN_ID) -> bool:
    """Switch the wallet to a chain, adding the chain if the wallet lacks it.

    Args:
        provider: Wallet provider
        chain_id: Target chain

    Returns:
        True if the wallet is on the target chain afterwards
    """
    chain_hex = hex(chain_id)
    try:
        await provider.request("wallet_switchEthereumChain", [{"chainId": chain_hex}])
        return True
    except ProviderRpcError as e:
        if e.code != UNRECOGNIZED_CHAIN or chain_id not in CHAIN_PARAMETERS:
            logger.warning(f"Chain switch to {chain_id} failed: {e.message}")
            return False

    try:
        await provider.request(
            "wallet_addEthereumChain",
            [{"chainId": chain_hex, **CHAIN_PARAMETERS[chain_id]}],
        )
    except ProviderRpcError as e:
        logger.error(f"Failed to add chain {chain_id}: {e.message}")
        return False
    logger.info(f"Added chain {chain_id} to wallet")
    return True
