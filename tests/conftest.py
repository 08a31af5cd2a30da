"""Test configuration and fixtures."""

import hashlib

from faragent.domain.value import (
    FarcasterHandle,
    FarcasterId,
    Signature,
    SocialIdentity,
    WalletAddress,
    WalletProof,
)

IDENTITY_DOMAIN = "faragent.local"
ORIGIN = "http://localhost:3000"


def make_address(seed: int) -> str:
    """Deterministic lower-case wallet address for a seed."""
    return "0x" + hashlib.sha256(f"address-{seed}".encode()).hexdigest()[:40]


def make_signature(seed: int) -> str:
    """Deterministic 65-byte signature for a seed."""
    digest = hashlib.sha256(f"signature-{seed}".encode()).hexdigest()
    return "0x" + digest + digest + "1b"


def make_wallet_proof(seed: int = 1) -> WalletProof:
    """Wallet proof whose message names its address.

    Args:
        seed: Selects the address and signature

    Returns:
        WalletProof value object
    """
    address = make_address(seed)
    return WalletProof(
        address=WalletAddress(address),
        message=f"localhost:3000 wants you to sign in with your Ethereum account:\n{address}",
        signature=Signature(make_signature(seed)),
    )


def make_social_identity(
    fid: int = 1234, username: str = "alice", **fields
) -> SocialIdentity:
    """Verified Farcaster identity as produced by payload extraction."""
    return SocialIdentity(
        fid=FarcasterId(fid), username=FarcasterHandle(username), **fields
    )
