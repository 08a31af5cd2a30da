"""Wallet signature verification.

Ownership of a wallet is proven by the wallet signing a canonical challenge.
No cryptographic recovery happens here: a forged signature can only derive
credentials for a new, unlinked account, never for an existing one, because
the Session Store checks the derived secret.
"""

import hashlib
from typing import Any
from urllib.parse import urlparse

import logfire
from pydantic import ValidationError as PydanticValidationError

from faragent.domain.error import (
    InvalidSignatureFormatError,
    ProviderUnavailableError,
    SignatureDeclinedError,
)
from faragent.domain.value import Signature, WalletAddress, WalletProof

from .base import Service

# EIP-1193 error codes
USER_REJECTED_REQUEST = 4001
UNRECOGNIZED_CHAIN = 4902


class ProviderRpcError(Exception):
    """EIP-1193 provider error."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


class WalletProvider:
    """EIP-1193 wallet provider interface."""

    name: str = "wallet"

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        """Send a JSON-RPC request to the wallet.

        Args:
            method: RPC method, e.g. eth_requestAccounts or personal_sign
            params: Positional parameters

        Returns:
            RPC result

        Raises:
            ProviderRpcError: If the wallet rejects or fails the request
        """
        raise NotImplementedError


class SignatureService(Service):
    """Domain service building challenges and normalizing wallet proofs."""

    def __init__(self, statement: str, chain_id: int) -> None:
        """Initialize signature service.

        Args:
            statement: Human-readable statement shown in the wallet
            chain_id: Chain the challenge names
        """
        self.statement = statement
        self.chain_id = chain_id

    def build_challenge(self, address: WalletAddress, origin: str) -> str:
        """Build the canonical challenge for an address.

        The nonce is derived from (origin, address) and the message carries
        no timestamp, so the same wallet signs the same text on every device.
        Wallets sign with deterministic ECDSA, which makes the signature, and
        the credentials derived from it, reproducible.

        Args:
            address: Normalized wallet address
            origin: Frontend origin, e.g. https://faragent.xyz

        Returns:
            Challenge text in EIP-4361 layout
        """
        host = urlparse(origin).netloc or origin
        nonce = hashlib.sha256(f"{origin}|{address.root}".encode("utf-8")).hexdigest()
        return (
            f"{host} wants you to sign in with your Ethereum account:\n"
            f"{address.root}\n"
            f"\n"
            f"{self.statement}\n"
            f"\n"
            f"URI: {origin}\n"
            f"Version: 1\n"
            f"Chain ID: {self.chain_id}\n"
            f"Nonce: {nonce[:16]}"
        )

    def normalize_signature(self, signature: str) -> Signature:
        """Normalize a signature to lower-case 0x-prefixed hex.

        Raises:
            InvalidSignatureFormatError: If it is not hex or shorter than 64 bytes
        """
        try:
            return Signature(signature)
        except PydanticValidationError as e:
            raise InvalidSignatureFormatError(
                f"Wallet returned an unusable signature: {e.errors()[0]['msg']}"
            ) from e

    def normalize_address(self, address: str) -> WalletAddress:
        """Normalize an address to lower-case 0x-prefixed hex.

        Raises:
            InvalidSignatureFormatError: If it is not a 20-byte hex address
        """
        try:
            return WalletAddress(address)
        except PydanticValidationError as e:
            raise InvalidSignatureFormatError(
                f"Wallet returned an invalid address: {address}"
            ) from e

    def verify(self, address: str, message: str, signature: str) -> WalletProof:
        """Turn a signed challenge into a wallet proof.

        Args:
            address: Address that signed
            message: The signed challenge
            signature: Signature returned by the wallet

        Returns:
            Normalized wallet proof

        Raises:
            InvalidSignatureFormatError: If the address or signature is malformed,
                or the message does not name the address
        """
        normalized_address = self.normalize_address(address)
        normalized_signature = self.normalize_signature(signature)

        if normalized_address.root not in message.lower():
            raise InvalidSignatureFormatError(
                "Signed message does not name the connecting wallet"
            )

        logfire.info("Wallet proof verified", address=normalized_address.root)
        return WalletProof(
            address=normalized_address,
            message=message,
            signature=normalized_signature,
        )

    async def request_proof(
        self, provider: WalletProvider | None, origin: str
    ) -> WalletProof:
        """Ask a wallet for its account and a signature over the challenge.

        Args:
            provider: EIP-1193 provider, or None when no wallet is available
            origin: Frontend origin named in the challenge

        Returns:
            Normalized wallet proof

        Raises:
            ProviderUnavailableError: If there is no provider or it fails
            SignatureDeclinedError: If the user rejects a request
            InvalidSignatureFormatError: If the wallet returns malformed data
        """
        if provider is None:
            raise ProviderUnavailableError("No wallet provider found")

        with logfire.span("signature_service.request_proof", provider=provider.name):
            try:
                accounts = await provider.request("eth_requestAccounts")
            except ProviderRpcError as e:
                raise self._translate_rpc_error(e) from e

            if not accounts:
                raise ProviderUnavailableError("Wallet returned no accounts")

            address = self.normalize_address(accounts[0])
            message = self.build_challenge(address, origin)
            signature = await self._personal_sign(provider, address, message)

            return self.verify(address.root, message, signature)

    async def _personal_sign(
        self, provider: WalletProvider, address: WalletAddress, message: str
    ) -> str:
        """personal_sign with the plain message, retrying hex-encoded.

        Some wallets only accept hex-encoded payloads and say so in the error.
        """
        try:
            result = await provider.request("personal_sign", [message, address.root])
        except ProviderRpcError as e:
            if e.code == USER_REJECTED_REQUEST:
                raise SignatureDeclinedError("Signature request was rejected") from e
            if "hex" not in e.message.lower() and "0x" not in e.message.lower():
                raise self._translate_rpc_error(e) from e

            logfire.info("Plain personal_sign refused, retrying hex-encoded")
            message_hex = "0x" + message.encode("utf-8").hex()
            try:
                result = await provider.request(
                    "personal_sign", [message_hex, address.root]
                )
            except ProviderRpcError as retry_error:
                raise self._translate_rpc_error(retry_error) from retry_error

        if not isinstance(result, str):
            raise InvalidSignatureFormatError("Wallet returned a non-text signature")
        return result

    @staticmethod
    def _translate_rpc_error(error: ProviderRpcError) -> Exception:
        if error.code == USER_REJECTED_REQUEST:
            return SignatureDeclinedError("Request was rejected in the wallet")
        return ProviderUnavailableError(f"Wallet request failed: {error.message}")
