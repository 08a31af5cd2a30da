"""In-memory link record repository for testing."""

from typing import Optional

from faragent.domain.error import BindingConflictError, StoreUnavailableError
from faragent.domain.model.link_record import LinkRecord
from faragent.domain.repository.link_record import LinkRecordRepository
from faragent.domain.value import AccountId, FarcasterId, WalletAddress


class InMemoryLinkRecordRepository(LinkRecordRepository):
    """In-memory implementation of LinkRecordRepository for testing.

    Enforces the same uniqueness rules as the database indexes. Set
    fail_next to make the next calls raise StoreUnavailableError.
    """

    def __init__(self) -> None:
        self._records: dict[AccountId, LinkRecord] = {}
        self.fail_next = 0
        self.commits = 0

    def _maybe_fail(self) -> None:
        if self.fail_next > 0:
            self.fail_next -= 1
            raise StoreUnavailableError("Simulated link store outage")

    async def find_by_account_id(self, account_id: AccountId) -> Optional[LinkRecord]:
        """Find record by account id."""
        self._maybe_fail()
        return self._records.get(account_id)

    async def find_by_wallet_address(
        self, address: WalletAddress
    ) -> Optional[LinkRecord]:
        """Find record by wallet address."""
        self._maybe_fail()
        for record in self._records.values():
            if record.wallet_address == address:
                return record
        return None

    async def find_by_farcaster_id(self, fid: FarcasterId) -> Optional[LinkRecord]:
        """Find record by Farcaster id."""
        self._maybe_fail()
        for record in self._records.values():
            if record.farcaster_id == fid:
                return record
        return None

    async def upsert(self, record: LinkRecord) -> LinkRecord:
        """Insert or replace the record of an account."""
        self._maybe_fail()
        for other in self._records.values():
            if other.account_id == record.account_id:
                continue
            if record.wallet_address and other.wallet_address == record.wallet_address:
                raise BindingConflictError("wallet_address", record.wallet_address.root)
            if record.farcaster_id and other.farcaster_id == record.farcaster_id:
                raise BindingConflictError("farcaster_fid", str(record.farcaster_id))

        existing = self._records.get(record.account_id)
        if existing is not None:
            record = record.model_copy(update={"created_at": existing.created_at})
        self._records[record.account_id] = record
        return record

    async def commit(self) -> None:
        """Writes are immediate; only counts commits."""
        self._maybe_fail()
        self.commits += 1
