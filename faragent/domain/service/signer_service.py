"""Farcaster signer provisioning interface."""

from faragent.domain.value import FarcasterHandle, FarcasterId
from faragent.domain.value.common import ValueObject


class FarcasterProfile(ValueObject):
    """Public profile of a Farcaster account."""

    fid: FarcasterId
    username: FarcasterHandle
    display_name: str | None = None
    pfp_url: str | None = None
    custody_address: str | None = None


class SignerInfo(ValueObject):
    """Managed signer that lets the app act for a Farcaster account."""

    signer_uuid: str
    public_key: str
    status: str  # generated, pending_approval, approved, revoked
    fid: FarcasterId | None = None
    approval_url: str | None = None


class SignerClient:
    """Generic signer/user-lookup client interface (Neynar-compatible)."""

    async def create_signer(self) -> SignerInfo:
        """Create a new managed signer.

        Returns:
            Signer in 'generated' state
        """
        raise NotImplementedError

    async def get_signer_status(self, signer_uuid: str) -> SignerInfo:
        """Look up a signer's current state."""
        raise NotImplementedError

    async def lookup_user_by_fid(self, fid: FarcasterId) -> FarcasterProfile | None:
        """Fetch the public profile of a Farcaster account, None if unknown."""
        raise NotImplementedError
