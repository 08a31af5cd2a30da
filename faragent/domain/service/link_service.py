"""Link record domain service."""

from collections.abc import Awaitable, Callable
from typing import TypeVar

import logfire

from faragent.domain.model.link_record import LinkRecord
from faragent.domain.repository.link_record import LinkRecordRepository
from faragent.domain.value import AccountId, FarcasterId, WalletAddress

from .base import with_store_retry

T = TypeVar("T")


class LinkService:
    """Domain service for link record operations.

    Retries transient Link Store failures a bounded number of times before
    surfacing StoreUnavailableError.
    """

    def __init__(
        self,
        link_record_repository: LinkRecordRepository,
        retry_attempts: int = 2,
        retry_delay: float = 0.5,
    ) -> None:
        """Initialize link service.

        Args:
            link_record_repository: Link record repository
            retry_attempts: Retries after the first failed call
            retry_delay: Seconds between attempts, doubled each retry
        """
        self.link_record_repository = link_record_repository
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay

    async def get_record(self, account_id: AccountId) -> LinkRecord | None:
        """Get the link record of an account.

        Args:
            account_id: Session Store account id

        Returns:
            Record if found, None otherwise
        """
        with logfire.span("link_service.get_record", account_id=str(account_id)):
            return await self._with_retry(
                "find_by_account_id",
                lambda: self.link_record_repository.find_by_account_id(account_id),
            )

    async def get_or_empty(self, account_id: AccountId) -> LinkRecord:
        """Get the record of an account, or a new empty one."""
        record = await self.get_record(account_id)
        return record or LinkRecord.empty(account_id)

    async def find_wallet_owner(self, address: WalletAddress) -> LinkRecord | None:
        """Find the record that binds a wallet address.

        Args:
            address: Normalized wallet address

        Returns:
            Record if the address is bound, None otherwise
        """
        with logfire.span("link_service.find_wallet_owner", address=address.root):
            record = await self._with_retry(
                "find_by_wallet_address",
                lambda: self.link_record_repository.find_by_wallet_address(address),
            )
            if record:
                logfire.info(
                    "Wallet already bound",
                    address=address.root,
                    account_id=str(record.account_id),
                )
            return record

    async def find_farcaster_owner(self, fid: FarcasterId) -> LinkRecord | None:
        """Find the record that binds a Farcaster id."""
        with logfire.span("link_service.find_farcaster_owner", fid=fid.root):
            record = await self._with_retry(
                "find_by_farcaster_id",
                lambda: self.link_record_repository.find_by_farcaster_id(fid),
            )
            if record:
                logfire.info(
                    "Farcaster id already bound",
                    fid=fid.root,
                    account_id=str(record.account_id),
                )
            return record

    async def save(self, record: LinkRecord) -> LinkRecord:
        """Upsert a record keyed on its account id.

        Raises:
            BindingConflictError: If another account holds one of its identities
            StoreUnavailableError: If the Link Store stays unreachable
        """
        with logfire.span(
            "link_service.save",
            account_id=str(record.account_id),
            has_wallet=record.has_wallet,
            has_farcaster=record.has_farcaster,
        ):
            saved = await self._with_retry(
                "upsert", lambda: self.link_record_repository.upsert(record)
            )
            logfire.info("Link record saved", account_id=str(saved.account_id))
            return saved

    async def commit(self) -> None:
        """Make saved records durable before anyone is told about them.

        Not retried: a failed commit has discarded the saved records.

        Raises:
            StoreUnavailableError: If the commit failed
        """
        with logfire.span("link_service.commit"):
            await self.link_record_repository.commit()

    async def _with_retry(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        return await with_store_retry(
            "link_store", operation, call, self.retry_attempts, self.retry_delay
        )
