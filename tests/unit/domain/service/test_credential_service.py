"""Unit tests for CredentialService."""

import hashlib

import pytest

from faragent.domain.service import CredentialService
from faragent.domain.value import (
    DerivationVariant,
    FarcasterHandle,
    FarcasterId,
    Signature,
)
from tests.conftest import (
    IDENTITY_DOMAIN,
    make_social_identity,
    make_wallet_proof,
)


@pytest.fixture
def credential_service() -> CredentialService:
    return CredentialService(identity_domain=IDENTITY_DOMAIN)


class TestWalletDerivation:
    """Tests for wallet credential derivation."""

    def test_identity_key_uses_address_without_prefix(self, credential_service):
        """Identity key should be wallet_<hex address>@domain."""
        proof = make_wallet_proof(1)

        pair = credential_service.derive(proof)

        assert pair.identity_key == f"wallet_{proof.address.hex}@{IDENTITY_DOMAIN}"

    def test_current_variant_hashes_signature_prefix_and_address_fragment(
        self, credential_service
    ):
        """WALLET_V2 secret should be w_ + 40 hex of sha256(sig[:64]:addr[:8])."""
        proof = make_wallet_proof(2)
        material = f"{proof.signature.hex[:64]}:{proof.address.hex[:8]}"
        expected = "w_" + hashlib.sha256(material.encode()).hexdigest()[:40]

        pair = credential_service.derive(proof)

        assert pair.variant == DerivationVariant.WALLET_V2
        assert pair.secret.get_secret_value() == expected
        assert not pair.is_legacy

    def test_legacy_variant_format(self, credential_service):
        """WALLET_V1 secret should be w_<sig[:20]>_<addr[:6]>."""
        proof = make_wallet_proof(3)

        pair = credential_service.derive_variant(proof, DerivationVariant.WALLET_V1)

        assert pair.secret.get_secret_value() == (
            f"w_{proof.signature.hex[:20]}_{proof.address.hex[:6]}"
        )
        assert pair.is_legacy

    def test_derivation_is_deterministic(self, credential_service):
        """Same proof should always yield the same pair."""
        first = credential_service.derive(make_wallet_proof(4))
        second = credential_service.derive(make_wallet_proof(4))

        assert first == second

    def test_only_signature_prefix_feeds_secret(self, credential_service):
        """Bytes past the first 32 signature bytes should not change the secret."""
        proof = make_wallet_proof(5)
        tampered_tail = proof.signature.root[:-4] + "abcd"
        other = proof.model_copy(
            update={"signature": Signature(tampered_tail)}
        )

        assert (
            credential_service.derive(proof).secret.get_secret_value()
            == credential_service.derive(other).secret.get_secret_value()
        )


class TestSocialDerivation:
    """Tests for Farcaster credential derivation."""

    def test_identity_key_uses_fid(self, credential_service):
        """Identity key should be farcaster_<fid>@domain."""
        pair = credential_service.derive(make_social_identity(fid=99))

        assert pair.identity_key == f"farcaster_99@{IDENTITY_DOMAIN}"

    def test_current_and_legacy_secrets(self, credential_service):
        """SOCIAL_V2 is fc_<fid>_<handle>; SOCIAL_V1 adds _secure_pwd."""
        identity = make_social_identity(fid=1234, username="alice")

        current = credential_service.derive(identity)
        legacy = credential_service.derive_variant(
            identity, DerivationVariant.SOCIAL_V1
        )

        assert current.secret.get_secret_value() == "fc_1234_alice"
        assert legacy.secret.get_secret_value() == "fc_1234_alice_secure_pwd"

    def test_proof_material_never_feeds_secret(self, credential_service):
        """Sign-in message and signature change every time and must be ignored."""
        first = make_social_identity(message="nonce-1", signature="0xaaa")
        second = make_social_identity(message="nonce-2", signature="0xbbb")

        assert credential_service.derive(first) == credential_service.derive(second)


class TestCandidates:
    """Tests for candidate ordering."""

    def test_current_first_then_legacy(self, credential_service):
        """Candidates should list the current variant before legacy ones."""
        wallet = credential_service.candidates(make_wallet_proof(6))
        social = credential_service.candidates(make_social_identity())

        assert [pair.variant for pair in wallet] == [
            DerivationVariant.WALLET_V2,
            DerivationVariant.WALLET_V1,
        ]
        assert [pair.variant for pair in social] == [
            DerivationVariant.SOCIAL_V2,
            DerivationVariant.SOCIAL_V1,
        ]

    def test_all_candidates_share_identity_key(self, credential_service):
        """Variants change the secret, never the identity key."""
        pairs = credential_service.candidates(make_wallet_proof(7))

        assert len({pair.identity_key for pair in pairs}) == 1

    def test_social_candidates_from_stored_fields(self, credential_service):
        """Stored fid and handle should reproduce the identity's candidates."""
        from_record = credential_service.social_candidates(
            FarcasterId(1234), FarcasterHandle("alice")
        )

        assert from_record == credential_service.candidates(make_social_identity())

    def test_variant_of_other_kind_is_rejected(self, credential_service):
        """Deriving a wallet variant for a social identity is a programming error."""
        with pytest.raises(ValueError):
            credential_service.derive_variant(
                make_social_identity(), DerivationVariant.WALLET_V2
            )
