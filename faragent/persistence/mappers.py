"""Mappers between domain models and database rows."""

from typing import Any, Dict
from uuid import UUID

from faragent.domain.model import LinkRecord
from faragent.domain.value import (
    AccountId,
    FarcasterHandle,
    FarcasterId,
    WalletAddress,
)


def row_to_link_record(row: Dict[str, Any]) -> LinkRecord:
    """Convert database row to LinkRecord domain model.

    Args:
        row: Database row as dict

    Returns:
        LinkRecord domain model
    """
    user_id = row["user_id"]
    return LinkRecord(
        account_id=AccountId(UUID(user_id) if isinstance(user_id, str) else user_id),
        wallet_address=WalletAddress(row["wallet_address"])
        if row.get("wallet_address")
        else None,
        farcaster_id=FarcasterId(row["farcaster_fid"])
        if row.get("farcaster_fid")
        else None,
        farcaster_handle=FarcasterHandle(row["farcaster_username"])
        if row.get("farcaster_username")
        else None,
        farcaster_display_name=row.get("farcaster_display_name") or None,
        farcaster_avatar_url=row.get("farcaster_pfp_url") or None,
        social_signer_token=row.get("farcaster_signer_uuid"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def link_record_to_dict(record: LinkRecord) -> Dict[str, Any]:
    """Convert LinkRecord domain model to database dict.

    Args:
        record: LinkRecord domain model

    Returns:
        Dict suitable for database insertion/update
    """
    return {
        "user_id": record.account_id,
        "wallet_address": record.wallet_address.root if record.wallet_address else None,
        "farcaster_fid": record.farcaster_id.root if record.farcaster_id else None,
        "farcaster_username": record.farcaster_handle.root
        if record.farcaster_handle
        else None,
        "farcaster_display_name": record.farcaster_display_name,
        "farcaster_pfp_url": record.farcaster_avatar_url,
        "farcaster_signer_uuid": record.social_signer_token,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }
