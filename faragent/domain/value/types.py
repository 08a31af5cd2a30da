"""Domain value objects for FarAgent.

Value objects are immutable and defined by their values, not identity.
They encapsulate validation rules for the two identity kinds a user can
link: an Ethereum wallet and a Farcaster account.
"""

import re
from enum import Enum

from pydantic import SecretStr, field_validator

from faragent.domain.value.common import RootValueObject, ValueObject


class IdentityKind(str, Enum):
    """Kind of externally verified identity."""

    WALLET = "wallet"
    SOCIAL = "social"


class DerivationVariant(str, Enum):
    """Credential derivation scheme.

    Every scheme that was ever issued stays listed so that accounts created
    under an old scheme can still be signed into and migrated.
    """

    WALLET_V1 = "wallet_v1"
    WALLET_V2 = "wallet_v2"
    SOCIAL_V1 = "social_v1"
    SOCIAL_V2 = "social_v2"

    @property
    def kind(self) -> IdentityKind:
        """Identity kind this variant derives credentials for."""
        if self in (DerivationVariant.WALLET_V1, DerivationVariant.WALLET_V2):
            return IdentityKind.WALLET
        return IdentityKind.SOCIAL


class LinkEvent(str, Enum):
    """Notification emitted after a successful link."""

    WALLET_CONNECTED = "wallet-connected"
    FARCASTER_CONNECTED = "farcaster-connected"


class LinkOutcome(str, Enum):
    """How a link attempt resolved the account."""

    SIGNED_IN = "signed_in"  # Existing account, current credentials
    SIGNED_UP = "signed_up"  # New account created
    MIGRATED = "migrated"  # Existing account, legacy credentials, secret rewritten
    CROSS_LINKED = "cross_linked"  # Signed into the account that already holds the identity
    MERGED = "merged"  # Identity added to the current session's account


class AuthFailureReason(str, Enum):
    """Why the Session Store rejected a credential pair."""

    INVALID_CREDENTIALS = "invalid_credentials"
    ALREADY_REGISTERED = "already_registered"
    OTHER = "other"


class WalletAddress(RootValueObject[str]):
    """Ethereum account address.

    Always stored lower-cased with the 0x prefix.
    Example: '0x52908400098527886e0f7030069857d2e4169ee7'
    """

    @field_validator("root", mode="before")
    @classmethod
    def normalize_address(cls, v: str) -> str:
        """Lower-case and prefix the address, then validate its shape."""
        if not isinstance(v, str):
            raise ValueError("Wallet address must be a string")
        v = v.strip().lower()
        if not v.startswith("0x"):
            v = f"0x{v}"
        if not re.match(r"^0x[0-9a-f]{40}$", v):
            raise ValueError("Wallet address must be 0x followed by 40 hex characters")
        return v

    @property
    def hex(self) -> str:
        """Address without the 0x prefix."""
        return self.root[2:]


class Signature(RootValueObject[str]):
    """Hex-encoded wallet signature, 0x-prefixed and lower-cased.

    EOA signatures are 65 bytes; smart-wallet signatures can be longer.
    """

    @field_validator("root", mode="before")
    @classmethod
    def normalize_signature(cls, v: str) -> str:
        """Lower-case and prefix the signature, then validate its shape."""
        if not isinstance(v, str):
            raise ValueError("Signature must be a string")
        v = v.strip().lower()
        if not v.startswith("0x"):
            v = f"0x{v}"
        body = v[2:]
        if not re.match(r"^[0-9a-f]*$", body):
            raise ValueError("Signature must be hex encoded")
        if len(body) < 128 or len(body) % 2:
            raise ValueError("Signature must be at least 64 whole bytes")
        return v

    @property
    def hex(self) -> str:
        """Signature without the 0x prefix."""
        return self.root[2:]


class FarcasterId(RootValueObject[int]):
    """Farcaster account id (fid). Positive and immutable."""

    @field_validator("root")
    @classmethod
    def validate_fid(cls, v: int) -> int:
        """Validate fid is positive."""
        if v < 1:
            raise ValueError("Farcaster id must be positive")
        return v


class FarcasterHandle(RootValueObject[str]):
    """Farcaster username, stored without a leading '@'."""

    @field_validator("root", mode="before")
    @classmethod
    def normalize_handle(cls, v: str) -> str:
        """Strip the '@' prefix and validate length."""
        if not isinstance(v, str):
            raise ValueError("Handle must be a string")
        v = v.strip().lstrip("@")
        if len(v) < 1 or len(v) > 255:
            raise ValueError("Handle must be 1-255 characters")
        return v


class CredentialPair(ValueObject):
    """Synthetic credential accepted by the Session Store.

    Derived on demand, never persisted.
    """

    identity_key: str
    secret: SecretStr
    variant: DerivationVariant

    @property
    def is_legacy(self) -> bool:
        """Whether this pair was derived with a retired scheme."""
        return self.variant in (
            DerivationVariant.WALLET_V1,
            DerivationVariant.SOCIAL_V1,
        )


class WalletProof(ValueObject):
    """Proof that the holder of a wallet signed the canonical challenge."""

    address: WalletAddress
    message: str
    signature: Signature

    @property
    def kind(self) -> IdentityKind:
        return IdentityKind.WALLET


class SocialIdentity(ValueObject):
    """Farcaster identity verified through the relay sign-in protocol.

    message and signature are kept for auditing only; credential
    derivation never reads them because they change on every sign-in.
    """

    fid: FarcasterId
    username: FarcasterHandle
    display_name: str | None = None
    pfp_url: str | None = None
    custody_address: WalletAddress | None = None
    message: str | None = None
    signature: str | None = None

    @property
    def kind(self) -> IdentityKind:
        return IdentityKind.SOCIAL


VerifiedIdentity = WalletProof | SocialIdentity
