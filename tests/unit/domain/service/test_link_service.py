"""Unit tests for LinkService and LinkNotifier."""

from uuid import uuid4

import pytest

from faragent.domain.error import BindingConflictError, StoreUnavailableError
from faragent.domain.model.link_record import LinkRecord
from faragent.domain.service import LinkNotifier, LinkService
from faragent.domain.value import AccountId, FarcasterId, LinkEvent, WalletAddress
from faragent.persistence.repository.inmemory import InMemoryLinkRecordRepository
from tests.conftest import make_address, make_social_identity


@pytest.fixture
def link_service() -> LinkService:
    return LinkService(link_record_repository=InMemoryLinkRecordRepository())


class TestLinkService:
    """Tests for LinkService."""

    @pytest.mark.asyncio
    async def test_get_or_empty_for_new_account(self, link_service):
        """Unknown accounts should get an empty, unsaved record."""
        account_id = AccountId(uuid4())

        record = await link_service.get_or_empty(account_id)

        assert record.account_id == account_id
        assert not record.has_wallet
        assert not record.has_farcaster
        assert await link_service.get_record(account_id) is None

    @pytest.mark.asyncio
    async def test_owner_lookups(self, link_service):
        """Saved identities should be found by wallet and by fid."""
        address = WalletAddress(make_address(1))
        record = (
            LinkRecord.empty(AccountId(uuid4()))
            .with_wallet(address)
            .with_social(make_social_identity(fid=42))
        )
        await link_service.save(record)

        by_wallet = await link_service.find_wallet_owner(address)
        by_fid = await link_service.find_farcaster_owner(FarcasterId(42))

        assert by_wallet is not None and by_wallet.account_id == record.account_id
        assert by_fid is not None and by_fid.account_id == record.account_id

    @pytest.mark.asyncio
    async def test_save_rejects_identity_bound_elsewhere(self, link_service):
        """A wallet held by one account cannot be saved for another."""
        address = WalletAddress(make_address(2))
        await link_service.save(LinkRecord.empty(AccountId(uuid4())).with_wallet(address))

        with pytest.raises(BindingConflictError) as exc_info:
            await link_service.save(
                LinkRecord.empty(AccountId(uuid4())).with_wallet(address)
            )

        assert exc_info.value.field == "wallet_address"


class TestLinkServiceOutage:
    """Tests for LinkService behavior while the Link Store is unreachable."""

    @pytest.mark.asyncio
    async def test_transient_read_failure_is_retried(self):
        """One failed read should be retried and succeed."""
        # Arrange
        repository = InMemoryLinkRecordRepository()
        service = LinkService(repository, retry_attempts=2, retry_delay=0)
        address = WalletAddress(make_address(3))
        record = LinkRecord.empty(AccountId(uuid4())).with_wallet(address)
        await service.save(record)
        repository.fail_next = 1

        # Act
        owner = await service.find_wallet_owner(address)

        # Assert
        assert owner is not None and owner.account_id == record.account_id
        assert repository.fail_next == 0

    @pytest.mark.asyncio
    async def test_retries_are_bounded(self):
        """A lasting outage should surface as StoreUnavailableError."""
        # Arrange
        repository = InMemoryLinkRecordRepository()
        service = LinkService(repository, retry_attempts=2, retry_delay=0)
        repository.fail_next = 5

        # Act / Assert
        with pytest.raises(StoreUnavailableError) as exc_info:
            await service.get_record(AccountId(uuid4()))

        assert exc_info.value.retryable
        # First call plus two retries
        assert repository.fail_next == 2

    @pytest.mark.asyncio
    async def test_commit_is_not_retried(self):
        """A failed commit is reported once without replaying the write."""
        # Arrange
        repository = InMemoryLinkRecordRepository()
        service = LinkService(repository, retry_attempts=2, retry_delay=0)
        repository.fail_next = 1

        # Act / Assert
        with pytest.raises(StoreUnavailableError):
            await service.commit()

        assert repository.commits == 0


class TestLinkNotifier:
    """Tests for LinkNotifier."""

    @pytest.mark.asyncio
    async def test_listeners_receive_their_event_only(self):
        """Listeners should be called for the event they subscribed to."""
        notifier = LinkNotifier()
        received: list[LinkEvent] = []

        async def listener(event, record):
            received.append(event)

        notifier.subscribe(LinkEvent.WALLET_CONNECTED, listener)
        record = LinkRecord.empty(AccountId(uuid4()))

        await notifier.emit(LinkEvent.WALLET_CONNECTED, record)
        await notifier.emit(LinkEvent.FARCASTER_CONNECTED, record)

        assert received == [LinkEvent.WALLET_CONNECTED]

    @pytest.mark.asyncio
    async def test_unsubscribe_and_failing_listener(self):
        """A failing listener must not break emit; unsubscribed ones are skipped."""
        notifier = LinkNotifier()
        calls: list[str] = []

        async def broken(event, record):
            raise RuntimeError("listener bug")

        async def counted(event, record):
            calls.append("counted")

        notifier.subscribe(LinkEvent.FARCASTER_CONNECTED, broken)
        unsubscribe = notifier.subscribe(LinkEvent.FARCASTER_CONNECTED, counted)
        record = LinkRecord.empty(AccountId(uuid4()))

        await notifier.emit(LinkEvent.FARCASTER_CONNECTED, record)
        unsubscribe()
        await notifier.emit(LinkEvent.FARCASTER_CONNECTED, record)

        assert calls == ["counted"]
