"""Link record entity.

Binds a Session Store account to its linked wallet and Farcaster identity.
"""

from datetime import datetime, timezone

from pydantic import Field

from faragent.domain.model.common import DomainModel
from faragent.domain.value import (
    AccountId,
    FarcasterHandle,
    FarcasterId,
    SocialIdentity,
    WalletAddress,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class LinkRecord(DomainModel):
    """Identity bindings of one account (one row per account).

    The record may hold wallet fields, Farcaster fields, both, or neither.
    Updating one kind never touches the other kind's fields.
    """

    account_id: AccountId
    wallet_address: WalletAddress | None = None
    farcaster_id: FarcasterId | None = None
    farcaster_handle: FarcasterHandle | None = None
    farcaster_display_name: str | None = None
    farcaster_avatar_url: str | None = None
    social_signer_token: str | None = None  # Neynar signer uuid
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @classmethod
    def empty(cls, account_id: AccountId) -> "LinkRecord":
        """New record with no identities bound."""
        return cls(account_id=account_id)

    @property
    def has_wallet(self) -> bool:
        return self.wallet_address is not None

    @property
    def has_farcaster(self) -> bool:
        return self.farcaster_id is not None

    def with_wallet(self, address: WalletAddress) -> "LinkRecord":
        """Bind a wallet, keeping Farcaster fields as they are."""
        return self.model_copy(
            update={"wallet_address": address, "updated_at": _now()}
        )

    def with_social(self, identity: SocialIdentity) -> "LinkRecord":
        """Bind a Farcaster identity, keeping wallet fields as they are.

        Display fields missing from the identity keep their stored values,
        and the signer token survives a re-link of the same fid.
        """
        same_fid = self.farcaster_id == identity.fid
        return self.model_copy(
            update={
                "farcaster_id": identity.fid,
                "farcaster_handle": identity.username,
                "farcaster_display_name": identity.display_name
                or (self.farcaster_display_name if same_fid else None),
                "farcaster_avatar_url": identity.pfp_url
                or (self.farcaster_avatar_url if same_fid else None),
                "social_signer_token": self.social_signer_token if same_fid else None,
                "updated_at": _now(),
            }
        )

    def with_signer(
        self,
        signer_token: str,
        display_name: str | None = None,
        avatar_url: str | None = None,
    ) -> "LinkRecord":
        """Store a provisioned signer token and refreshed profile fields."""
        return self.model_copy(
            update={
                "social_signer_token": signer_token,
                "farcaster_display_name": display_name or self.farcaster_display_name,
                "farcaster_avatar_url": avatar_url or self.farcaster_avatar_url,
                "updated_at": _now(),
            }
        )

    def without_wallet(self) -> "LinkRecord":
        """Clear wallet fields only."""
        return self.model_copy(update={"wallet_address": None, "updated_at": _now()})

    def without_social(self) -> "LinkRecord":
        """Clear Farcaster fields and the signer token only."""
        return self.model_copy(
            update={
                "farcaster_id": None,
                "farcaster_handle": None,
                "farcaster_display_name": None,
                "farcaster_avatar_url": None,
                "social_signer_token": None,
                "updated_at": _now(),
            }
        )
