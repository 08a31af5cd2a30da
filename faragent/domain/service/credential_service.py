"""Identity credential derivation.

Maps a verified identity to the synthetic (identity key, secret) pair the
Session Store authenticates with. Derivation is pure and deterministic: the
same identity yields the same pair on every device, so nothing is stored.

Schemes, current first:

    Wallet   WALLET_V2  w_<sha256(sig[:64] ":" addr[:8])[:40]>
             WALLET_V1  w_<sig[:20]>_<addr[:6]>
    Social   SOCIAL_V2  fc_<fid>_<handle>
             SOCIAL_V1  fc_<fid>_<handle>_secure_pwd

Social secrets use only (fid, handle). Sign-in messages and signatures
change on every sign-in and must never feed the secret.
"""

import hashlib

from pydantic import SecretStr

from faragent.domain.value import (
    CredentialPair,
    DerivationVariant,
    FarcasterHandle,
    FarcasterId,
    IdentityKind,
    SocialIdentity,
    VerifiedIdentity,
    WalletAddress,
    WalletProof,
)

from .base import Service

CURRENT_VARIANTS: dict[IdentityKind, DerivationVariant] = {
    IdentityKind.WALLET: DerivationVariant.WALLET_V2,
    IdentityKind.SOCIAL: DerivationVariant.SOCIAL_V2,
}

# Oldest first
LEGACY_VARIANTS: dict[IdentityKind, tuple[DerivationVariant, ...]] = {
    IdentityKind.WALLET: (DerivationVariant.WALLET_V1,),
    IdentityKind.SOCIAL: (DerivationVariant.SOCIAL_V1,),
}


class CredentialService(Service):
    """Domain service deriving Session Store credentials from identities."""

    def __init__(self, identity_domain: str) -> None:
        """Initialize credential service.

        Args:
            identity_domain: Domain part of synthetic identity keys
        """
        self.identity_domain = identity_domain

    def wallet_identity_key(self, address: WalletAddress) -> str:
        return f"wallet_{address.hex}@{self.identity_domain}"

    def social_identity_key(self, fid: FarcasterId) -> str:
        return f"farcaster_{fid.root}@{self.identity_domain}"

    def identity_key(self, identity: VerifiedIdentity) -> str:
        """Synthetic identity key of any verified identity."""
        if isinstance(identity, WalletProof):
            return self.wallet_identity_key(identity.address)
        return self.social_identity_key(identity.fid)

    def derive(self, identity: VerifiedIdentity) -> CredentialPair:
        """Derive the current credential pair for an identity.

        Args:
            identity: Wallet proof or verified Farcaster identity

        Returns:
            Credential pair under the current variant
        """
        return self.derive_variant(identity, CURRENT_VARIANTS[identity.kind])

    def candidates(self, identity: VerifiedIdentity) -> list[CredentialPair]:
        """All pairs the identity may have been registered with.

        Returns:
            Current pair first, then legacy pairs in historical order
        """
        variants = (CURRENT_VARIANTS[identity.kind],) + LEGACY_VARIANTS[identity.kind]
        return [self.derive_variant(identity, variant) for variant in variants]

    def social_candidates(
        self, fid: FarcasterId, handle: FarcasterHandle
    ) -> list[CredentialPair]:
        """Candidates for a Farcaster account known only from a Link Record."""
        return self.candidates(SocialIdentity(fid=fid, username=handle))

    def derive_variant(
        self, identity: VerifiedIdentity, variant: DerivationVariant
    ) -> CredentialPair:
        """Derive the pair for a specific variant.

        Raises:
            ValueError: If the variant belongs to the other identity kind
        """
        if variant.kind != identity.kind:
            raise ValueError(
                f"Variant {variant.value} cannot derive {identity.kind.value} credentials"
            )

        if isinstance(identity, WalletProof):
            secret = self._wallet_secret(identity, variant)
        else:
            secret = self._social_secret(identity, variant)

        return CredentialPair(
            identity_key=self.identity_key(identity),
            secret=SecretStr(secret),
            variant=variant,
        )

    @staticmethod
    def _wallet_secret(proof: WalletProof, variant: DerivationVariant) -> str:
        signature = proof.signature.hex
        address = proof.address.hex
        if variant == DerivationVariant.WALLET_V1:
            return f"w_{signature[:20]}_{address[:6]}"
        digest = hashlib.sha256(f"{signature[:64]}:{address[:8]}".encode("utf-8"))
        return f"w_{digest.hexdigest()[:40]}"

    @staticmethod
    def _social_secret(identity: SocialIdentity, variant: DerivationVariant) -> str:
        fid = identity.fid.root
        handle = identity.username.root
        if variant == DerivationVariant.SOCIAL_V1:
            return f"fc_{fid}_{handle}_secure_pwd"
        return f"fc_{fid}_{handle}"
