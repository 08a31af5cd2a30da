"""Domain value objects for FarAgent."""

from faragent.domain.value.identifiers import AccountId, SignInSessionId
from faragent.domain.value.types import (
    AuthFailureReason,
    CredentialPair,
    DerivationVariant,
    FarcasterHandle,
    FarcasterId,
    IdentityKind,
    LinkEvent,
    LinkOutcome,
    Signature,
    SocialIdentity,
    VerifiedIdentity,
    WalletAddress,
    WalletProof,
)

__all__ = [
    # Identifiers
    "AccountId",
    "SignInSessionId",
    # Types
    "AuthFailureReason",
    "CredentialPair",
    "DerivationVariant",
    "FarcasterHandle",
    "FarcasterId",
    "IdentityKind",
    "LinkEvent",
    "LinkOutcome",
    "Signature",
    "SocialIdentity",
    "VerifiedIdentity",
    "WalletAddress",
    "WalletProof",
]
