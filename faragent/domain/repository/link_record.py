"""Link record repository interface."""

from abc import ABC, abstractmethod
from typing import Optional

from faragent.domain.model.link_record import LinkRecord
from faragent.domain.value import AccountId, FarcasterId, WalletAddress


class LinkRecordRepository(ABC):
    """Repository for LinkRecord entity.

    Records are keyed by account id; wallet address and Farcaster id are
    each bound to at most one account.
    """

    @abstractmethod
    async def find_by_account_id(self, account_id: AccountId) -> Optional[LinkRecord]:
        """Find the record of an account.

        Args:
            account_id: Session Store account id

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_wallet_address(
        self, address: WalletAddress
    ) -> Optional[LinkRecord]:
        """Find the record that binds a wallet address.

        Args:
            address: Normalized wallet address

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_farcaster_id(self, fid: FarcasterId) -> Optional[LinkRecord]:
        """Find the record that binds a Farcaster id.

        Args:
            fid: Farcaster id

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    async def upsert(self, record: LinkRecord) -> LinkRecord:
        """Insert or update the record, using account id as the conflict key.

        Args:
            record: The record to store

        Returns:
            The stored record

        Raises:
            StoreUnavailableError: If the Link Store could not be reached
            BindingConflictError: If the wallet address or Farcaster id is
                bound to a different account
        """
        pass

    @abstractmethod
    async def commit(self) -> None:
        """Make every record stored so far durable and visible to readers.

        Raises:
            StoreUnavailableError: If the Link Store could not be reached
        """
        pass
