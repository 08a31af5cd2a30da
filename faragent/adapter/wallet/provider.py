"""EIP-1193 wallet providers."""

import itertools
import logging
from typing import Any

import httpx

from faragent.domain.service.signature_service import ProviderRpcError, WalletProvider

logger = logging.getLogger(__name__)

# EIP-1193 "Disconnected": the provider cannot reach any chain
DISCONNECTED = 4900


class JsonRpcWalletProvider(WalletProvider):
    """Wallet provider speaking JSON-RPC over HTTP.

    Works against any endpoint that signs on request: a local node with
    unlocked accounts, a remote signer, or a wallet bridge.
    """

    def __init__(
        self,
        url: str,
        name: str = "jsonrpc",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize JSON-RPC wallet provider.

        Args:
            url: JSON-RPC endpoint
            name: Wallet type reported to callers (coinbase, metamask, core...)
            timeout: Seconds per request; signing may wait for the user
            transport: Optional httpx transport (tests)
        """
        self.url = url
        self.name = name
        self.timeout = timeout
        self.transport = transport
        self._ids = itertools.count(1)

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        """Send one JSON-RPC request.

        Raises:
            ProviderRpcError: With the wallet's error code, or 4900 if the
                endpoint cannot be reached
        """
        body = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.post(self.url, json=body)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Wallet RPC {method} failed: {e}")
            raise ProviderRpcError(DISCONNECTED, f"Wallet unreachable: {e}") from e

        result = response.json()
        if "error" in result:
            error = result["error"]
            logger.info(f"Wallet RPC {method} returned error {error.get('code')}")
            raise ProviderRpcError(
                int(error.get("code", -32603)),
                str(error.get("message", "Unknown wallet error")),
                error.get("data"),
            )
        return result.get("result")


def select_provider(
    providers: list[WalletProvider], wallet_type: str | None = None
) -> WalletProvider | None:
    """Pick the provider for a wallet type.

    Falls back to the first available provider when the requested type is
    not installed, and returns None when there is no provider at all.

    Args:
        providers: Available providers
        wallet_type: Preferred type (core, coinbase, metamask)

    Returns:
        Selected provider or None
    """
    if not providers:
        return None
    if wallet_type is not None:
        for provider in providers:
            if provider.name == wallet_type:
                return provider
        logger.info(f"No {wallet_type} provider, falling back to {providers[0].name}")
    return providers[0]
