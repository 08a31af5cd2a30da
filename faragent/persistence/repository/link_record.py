"""LinkRecord repository implementation using PostgreSQL."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    PendingRollbackError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from faragent.domain.error import BindingConflictError, StoreUnavailableError
from faragent.domain.model.link_record import LinkRecord
from faragent.domain.repository.link_record import LinkRecordRepository
from faragent.domain.value import AccountId, FarcasterId, WalletAddress
from faragent.persistence.mappers import link_record_to_dict, row_to_link_record
from faragent.persistence.tables import user_connections_table

# Connection loss, server restarts, pool exhaustion and timeouts
UNAVAILABLE_ERRORS = (
    OperationalError,
    InterfaceError,
    PendingRollbackError,
    PoolTimeoutError,
    OSError,
    TimeoutError,
)


class PostgresLinkRecordRepository(LinkRecordRepository):
    """PostgreSQL implementation of LinkRecordRepository.

    Database outages surface as StoreUnavailableError; uniqueness violations
    as BindingConflictError.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def _find_one(self, *criteria) -> Optional[LinkRecord]:
        stmt = select(user_connections_table).where(*criteria)
        try:
            result = await self.session.execute(stmt)
            row = result.mappings().first()
        except UNAVAILABLE_ERRORS as e:
            # Reads hold no pending writes; rolling back lets a retry reconnect
            await self.session.rollback()
            raise StoreUnavailableError(f"Link Store read failed: {e}") from e

        if not row:
            return None

        return row_to_link_record(dict(row))

    async def find_by_account_id(self, account_id: AccountId) -> Optional[LinkRecord]:
        """Get the record of an account.

        Args:
            account_id: Session Store account id

        Returns:
            LinkRecord if found, None otherwise
        """
        return await self._find_one(user_connections_table.c.user_id == account_id)

    async def find_by_wallet_address(
        self, address: WalletAddress
    ) -> Optional[LinkRecord]:
        """Get the record that binds a wallet address."""
        return await self._find_one(
            user_connections_table.c.wallet_address == address.root
        )

    async def find_by_farcaster_id(self, fid: FarcasterId) -> Optional[LinkRecord]:
        """Get the record that binds a Farcaster id."""
        return await self._find_one(user_connections_table.c.farcaster_fid == fid.root)

    async def upsert(self, record: LinkRecord) -> LinkRecord:
        """Insert or update the record keyed on user_id.

        Runs in a savepoint so a uniqueness violation leaves the request
        transaction usable for the caller's retry.

        Args:
            record: LinkRecord to store

        Returns:
            Stored LinkRecord

        Raises:
            BindingConflictError: If another row holds the wallet or fid
            StoreUnavailableError: If the database could not be reached
        """
        values = link_record_to_dict(record)
        update = {
            key: value
            for key, value in values.items()
            if key not in ("user_id", "created_at")
        }
        stmt = (
            insert(user_connections_table)
            .values(**values)
            .on_conflict_do_update(index_elements=["user_id"], set_=update)
            .returning(user_connections_table)
        )

        try:
            async with self.session.begin_nested():
                result = await self.session.execute(stmt)
                row = result.mappings().one()
        except IntegrityError as e:
            message = str(e.orig)
            if "farcaster_fid" in message:
                raise BindingConflictError(
                    "farcaster_fid", str(values["farcaster_fid"])
                ) from e
            raise BindingConflictError(
                "wallet_address", str(values["wallet_address"])
            ) from e
        except UNAVAILABLE_ERRORS as e:
            raise StoreUnavailableError(f"Link Store write failed: {e}") from e

        return row_to_link_record(dict(row))

    async def commit(self) -> None:
        """Commit the request transaction.

        Raises:
            StoreUnavailableError: If the commit could not reach the database
        """
        try:
            await self.session.commit()
        except UNAVAILABLE_ERRORS as e:
            await self.session.rollback()
            raise StoreUnavailableError(f"Link Store commit failed: {e}") from e
