"""Unit tests for SignatureService."""

from typing import Any

import pytest

from faragent.domain.error import (
    InvalidSignatureFormatError,
    ProviderUnavailableError,
    SignatureDeclinedError,
)
from faragent.domain.service import ProviderRpcError, SignatureService, WalletProvider
from faragent.domain.value import WalletAddress
from tests.conftest import ORIGIN, make_address, make_signature


class FakeWallet(WalletProvider):
    """Wallet answering requests from a per-method script."""

    name = "fake"

    def __init__(self, responses: dict[str, list[Any]]) -> None:
        self.responses = responses
        self.calls: list[tuple[str, list[Any] | None]] = []

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        self.calls.append((method, params))
        result = self.responses[method].pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def signature_service() -> SignatureService:
    return SignatureService(statement="Sign in to FarAgent.", chain_id=8453)


class TestBuildChallenge:
    """Tests for build_challenge."""

    def test_challenge_is_deterministic_per_origin_and_address(
        self, signature_service
    ):
        """Same address and origin should always produce the same text."""
        address = WalletAddress(make_address(1))

        first = signature_service.build_challenge(address, ORIGIN)
        second = signature_service.build_challenge(address, ORIGIN)

        assert first == second

    def test_challenge_names_origin_address_and_statement(self, signature_service):
        """Challenge should name the host, lower-cased address and statement."""
        address = WalletAddress(make_address(1).upper().replace("0X", "0x"))

        message = signature_service.build_challenge(address, "https://faragent.xyz")

        assert message.startswith("faragent.xyz wants you to sign in")
        assert make_address(1) in message
        assert "Sign in to FarAgent." in message
        assert "Chain ID: 8453" in message

    def test_nonce_differs_between_addresses(self, signature_service):
        """Different wallets should get different challenges."""
        first = signature_service.build_challenge(WalletAddress(make_address(1)), ORIGIN)
        second = signature_service.build_challenge(
            WalletAddress(make_address(2)), ORIGIN
        )

        assert first.splitlines()[-1] != second.splitlines()[-1]


class TestNormalizeSignature:
    """Tests for normalize_signature."""

    def test_adds_prefix_and_lowercases(self, signature_service):
        """Bare upper-case hex should be normalized."""
        raw = make_signature(1)[2:].upper()

        signature = signature_service.normalize_signature(raw)

        assert signature.root == make_signature(1)

    @pytest.mark.parametrize(
        "raw",
        [
            "0x1234",  # too short
            "0x" + "zz" * 65,  # not hex
            "0x" + "a" * 129,  # odd length
        ],
    )
    def test_rejects_malformed(self, signature_service, raw):
        """Malformed signatures should raise InvalidSignatureFormatError."""
        with pytest.raises(InvalidSignatureFormatError):
            signature_service.normalize_signature(raw)


class TestVerify:
    """Tests for verify."""

    def test_returns_normalized_proof(self, signature_service):
        """Proof should carry the normalized address and signature."""
        address = make_address(3)
        message = signature_service.build_challenge(WalletAddress(address), ORIGIN)

        proof = signature_service.verify(
            address.upper().replace("0X", "0x"), message, make_signature(3).upper()
        )

        assert proof.address.root == address
        assert proof.signature.root == make_signature(3)
        assert proof.message == message

    def test_rejects_message_for_other_address(self, signature_service):
        """A challenge signed for another wallet must not be accepted."""
        message = signature_service.build_challenge(
            WalletAddress(make_address(4)), ORIGIN
        )

        with pytest.raises(InvalidSignatureFormatError):
            signature_service.verify(make_address(5), message, make_signature(5))


class TestRequestProof:
    """Tests for request_proof."""

    @pytest.mark.asyncio
    async def test_no_provider(self, signature_service):
        """Missing provider should raise ProviderUnavailableError."""
        with pytest.raises(ProviderUnavailableError):
            await signature_service.request_proof(None, ORIGIN)

    @pytest.mark.asyncio
    async def test_signs_canonical_challenge(self, signature_service):
        """Provider should be asked to sign the canonical challenge."""
        address = make_address(6)
        wallet = FakeWallet(
            {
                "eth_requestAccounts": [[address]],
                "personal_sign": [make_signature(6)],
            }
        )

        proof = await signature_service.request_proof(wallet, ORIGIN)

        expected = signature_service.build_challenge(WalletAddress(address), ORIGIN)
        assert wallet.calls[1] == ("personal_sign", [expected, address])
        assert proof.address.root == address

    @pytest.mark.asyncio
    async def test_retries_hex_encoded_when_wallet_asks(self, signature_service):
        """A wallet that only accepts hex payloads should get a second request."""
        address = make_address(7)
        wallet = FakeWallet(
            {
                "eth_requestAccounts": [[address]],
                "personal_sign": [
                    ProviderRpcError(-32602, "Message must be 0x-prefixed hex"),
                    make_signature(7),
                ],
            }
        )

        proof = await signature_service.request_proof(wallet, ORIGIN)

        retried_message = wallet.calls[2][1][0]
        assert retried_message.startswith("0x")
        assert bytes.fromhex(retried_message[2:]).decode() == proof.message

    @pytest.mark.asyncio
    async def test_user_rejection(self, signature_service):
        """EIP-1193 code 4001 should raise SignatureDeclinedError."""
        wallet = FakeWallet(
            {
                "eth_requestAccounts": [[make_address(8)]],
                "personal_sign": [ProviderRpcError(4001, "User rejected the request")],
            }
        )

        with pytest.raises(SignatureDeclinedError):
            await signature_service.request_proof(wallet, ORIGIN)

    @pytest.mark.asyncio
    async def test_rejected_account_request(self, signature_service):
        """Rejecting the connect prompt should also be a decline."""
        wallet = FakeWallet(
            {"eth_requestAccounts": [ProviderRpcError(4001, "User rejected")]}
        )

        with pytest.raises(SignatureDeclinedError):
            await signature_service.request_proof(wallet, ORIGIN)

    @pytest.mark.asyncio
    async def test_malformed_signature_from_wallet(self, signature_service):
        """A short signature from the wallet should raise InvalidSignatureFormatError."""
        wallet = FakeWallet(
            {
                "eth_requestAccounts": [[make_address(9)]],
                "personal_sign": ["0xdeadbeef"],
            }
        )

        with pytest.raises(InvalidSignatureFormatError):
            await signature_service.request_proof(wallet, ORIGIN)
