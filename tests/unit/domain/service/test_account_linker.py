"""Unit tests for AccountLinker."""

import asyncio
from uuid import uuid4

import pytest
from pydantic import SecretStr

from faragent.adapter.supabase.auth import InMemorySessionStore
from faragent.domain.error import (
    BindingConflictError,
    LinkConflictError,
    StoreUnavailableError,
)
from faragent.domain.model.account import Session
from faragent.domain.model.link_record import LinkRecord
from faragent.domain.repository import LinkRecordRepository
from faragent.domain.service import (
    AccountLinker,
    CredentialService,
    LinkNotifier,
    LinkService,
    SessionService,
    SessionStore,
)
from faragent.domain.value import (
    AccountId,
    DerivationVariant,
    FarcasterHandle,
    FarcasterId,
    LinkEvent,
    LinkOutcome,
)
from faragent.persistence.repository.inmemory import InMemoryLinkRecordRepository
from tests.conftest import IDENTITY_DOMAIN, make_social_identity, make_wallet_proof
from tests.harness import create_env_fixture

# Unit test fixture - everything mocked
unit_env = create_env_fixture()


def _secret(credential_service, identity, variant=None) -> str:
    pair = (
        credential_service.derive_variant(identity, variant)
        if variant
        else credential_service.derive(identity)
    )
    return pair.secret.get_secret_value()


class TestSignInAndSignUp:
    """Tests for linking without a current session."""

    @pytest.mark.asyncio
    async def test_new_wallet_signs_up_and_records_address(self, unit_env):
        """First wallet sign-in should create an account and a Link Record."""
        # Arrange
        linker = await unit_env.get(AccountLinker)
        notifier = await unit_env.get(LinkNotifier)
        store: InMemorySessionStore = await unit_env.get(SessionStore)
        events: list[LinkEvent] = []

        async def on_event(event, record):
            events.append(event)

        notifier.subscribe(LinkEvent.WALLET_CONNECTED, on_event)
        proof = make_wallet_proof(1)

        # Act
        result = await linker.link(proof)

        # Assert
        assert result.outcome == LinkOutcome.SIGNED_UP
        assert result.record.account_id == result.session.account_id
        assert result.record.wallet_address == proof.address
        assert store.account_count == 1
        assert events == [LinkEvent.WALLET_CONNECTED]

    @pytest.mark.asyncio
    async def test_repeat_sign_in_creates_no_duplicate(self, unit_env):
        """Signing in twice with the same identity should reuse the account."""
        linker = await unit_env.get(AccountLinker)
        store: InMemorySessionStore = await unit_env.get(SessionStore)

        first = await linker.link(make_social_identity())
        second = await linker.link(make_social_identity())

        assert first.outcome == LinkOutcome.SIGNED_UP
        assert second.outcome == LinkOutcome.SIGNED_IN
        assert first.session.account_id == second.session.account_id
        assert store.account_count == 1
        assert store.sign_up_calls == 1

    @pytest.mark.asyncio
    async def test_unknown_secret_on_existing_account_is_conflict(self, unit_env):
        """An account no candidate can open should raise LinkConflictError."""
        linker = await unit_env.get(AccountLinker)
        credential_service = await unit_env.get(CredentialService)
        store: InMemorySessionStore = await unit_env.get(SessionStore)
        proof = make_wallet_proof(2)
        store.register(credential_service.identity_key(proof), "set-elsewhere")

        with pytest.raises(LinkConflictError) as exc_info:
            await linker.link(proof)

        assert proof.address.root in exc_info.value.message
        assert store.account_count == 1


class TestLegacyMigration:
    """Tests for self-healing migration of legacy credentials."""

    @pytest.mark.asyncio
    async def test_legacy_wallet_account_is_migrated(self, unit_env):
        """A WALLET_V1 account should be signed into and rewritten to WALLET_V2."""
        # Arrange
        linker = await unit_env.get(AccountLinker)
        credential_service = await unit_env.get(CredentialService)
        store: InMemorySessionStore = await unit_env.get(SessionStore)
        proof = make_wallet_proof(3)
        key = credential_service.identity_key(proof)
        account = store.register(
            key, _secret(credential_service, proof, DerivationVariant.WALLET_V1)
        )

        # Act
        result = await linker.link(proof)

        # Assert
        assert result.outcome == LinkOutcome.MIGRATED
        assert result.session.account_id == account.id
        assert store.secret_of(key) == _secret(credential_service, proof)
        assert store.account_count == 1

    @pytest.mark.asyncio
    async def test_migrated_account_signs_in_with_current_next_time(self, unit_env):
        """After self-heal the current variant should work directly."""
        linker = await unit_env.get(AccountLinker)
        credential_service = await unit_env.get(CredentialService)
        store: InMemorySessionStore = await unit_env.get(SessionStore)
        identity = make_social_identity(fid=5, username="carol")
        store.register(
            credential_service.identity_key(identity),
            _secret(credential_service, identity, DerivationVariant.SOCIAL_V1),
        )

        first = await linker.link(identity)
        second = await linker.link(identity)

        assert first.outcome == LinkOutcome.MIGRATED
        assert second.outcome == LinkOutcome.SIGNED_IN

    @pytest.mark.asyncio
    async def test_renamed_handle_recovers_with_stored_handle(self, unit_env):
        """A handle change should be recovered from the stored handle."""
        # Arrange
        linker = await unit_env.get(AccountLinker)
        credential_service = await unit_env.get(CredentialService)
        store: InMemorySessionStore = await unit_env.get(SessionStore)
        repo = await unit_env.get(LinkRecordRepository)
        old = make_social_identity(fid=6, username="oldname")
        account = store.register(
            credential_service.identity_key(old), _secret(credential_service, old)
        )
        await repo.upsert(LinkRecord.empty(account.id).with_social(old))
        renamed = make_social_identity(fid=6, username="newname")

        # Act
        result = await linker.link(renamed)

        # Assert
        assert result.outcome == LinkOutcome.MIGRATED
        assert result.session.account_id == account.id
        assert result.record.farcaster_handle == FarcasterHandle("newname")
        assert store.secret_of(credential_service.identity_key(old)) == _secret(
            credential_service, renamed
        )

    @pytest.mark.asyncio
    async def test_failed_heal_does_not_fail_the_link(self):
        """A store outage during self-heal should leave the legacy secret working."""

        class NoHealStore(InMemorySessionStore):
            async def update_secret(self, session, secret):
                raise StoreUnavailableError("Session store returned 503")

        store = NoHealStore()
        credential_service = CredentialService(IDENTITY_DOMAIN)
        linker = AccountLinker(
            credential_service=credential_service,
            session_service=SessionService(store, retry_attempts=0, retry_delay=0),
            link_service=LinkService(InMemoryLinkRecordRepository()),
            notifier=LinkNotifier(),
        )
        identity = make_social_identity(fid=7, username="dave")
        legacy = _secret(credential_service, identity, DerivationVariant.SOCIAL_V1)
        store.register(credential_service.identity_key(identity), legacy)

        result = await linker.link(identity)

        assert result.outcome == LinkOutcome.MIGRATED
        assert store.secret_of(credential_service.identity_key(identity)) == legacy


class TestCrossLinking:
    """Tests for identities already bound to another account."""

    @pytest.mark.asyncio
    async def test_wallet_held_by_farcaster_account_cross_links(self, unit_env):
        """Signing in with a wallet connected to a Farcaster account opens that account."""
        # Arrange: Farcaster account that connected the wallet while signed in
        linker = await unit_env.get(AccountLinker)
        store: InMemorySessionStore = await unit_env.get(SessionStore)
        social = await linker.link(make_social_identity(fid=10, username="erin"))
        proof = make_wallet_proof(10)
        await linker.link(proof, current_session=social.session)

        # Act: later, sign in with only the wallet
        result = await linker.link(proof)

        # Assert
        assert result.outcome == LinkOutcome.CROSS_LINKED
        assert result.session.account_id == social.session.account_id
        assert result.record.wallet_address == proof.address
        assert result.record.farcaster_id == FarcasterId(10)
        assert store.account_count == 1

    @pytest.mark.asyncio
    async def test_wallet_held_by_account_without_farcaster_is_conflict(
        self, unit_env
    ):
        """Without social credentials to try, the wallet cannot be cross-linked."""
        linker = await unit_env.get(AccountLinker)
        repo = await unit_env.get(LinkRecordRepository)
        proof = make_wallet_proof(11)
        await repo.upsert(
            LinkRecord.empty(AccountId(uuid4())).with_wallet(proof.address)
        )

        with pytest.raises(LinkConflictError):
            await linker.link(proof)

    @pytest.mark.asyncio
    async def test_farcaster_held_by_wallet_account_is_conflict(self, unit_env):
        """A fid bound to an account with a wallet tells the user to use the wallet."""
        # Arrange
        linker = await unit_env.get(AccountLinker)
        credential_service = await unit_env.get(CredentialService)
        store: InMemorySessionStore = await unit_env.get(SessionStore)
        wallet = await linker.link(make_wallet_proof(12))
        identity = make_social_identity(fid=12, username="frank")
        await linker.link(identity, current_session=wallet.session)
        # Someone else registered the Farcaster identity key with an unknown secret
        store.register(credential_service.identity_key(identity), "not-derivable")

        # Act / Assert
        with pytest.raises(LinkConflictError) as exc_info:
            await linker.link(identity)

        assert wallet.record.wallet_address.root in exc_info.value.message


class TestMerge:
    """Tests for linking with a current session."""

    @pytest.mark.asyncio
    async def test_merge_keeps_session_and_other_fields(self, unit_env):
        """Connecting Farcaster to a wallet account should keep the wallet fields."""
        linker = await unit_env.get(AccountLinker)
        store: InMemorySessionStore = await unit_env.get(SessionStore)
        wallet = await linker.link(make_wallet_proof(20))

        result = await linker.link(
            make_social_identity(fid=20, username="gina", display_name="Gina"),
            current_session=wallet.session,
        )

        assert result.outcome == LinkOutcome.MERGED
        assert result.session == wallet.session
        assert result.record.wallet_address == wallet.record.wallet_address
        assert result.record.farcaster_display_name == "Gina"
        assert store.account_count == 1

    @pytest.mark.asyncio
    async def test_merge_identity_of_other_account_is_conflict(self, unit_env):
        """An identity bound to another account must not be moved."""
        linker = await unit_env.get(AccountLinker)
        owner = await linker.link(make_social_identity(fid=21, username="hank"))
        other = await linker.link(make_wallet_proof(21))

        with pytest.raises(LinkConflictError):
            await linker.link(
                make_social_identity(fid=21, username="hank"),
                current_session=other.session,
            )

        repo = await unit_env.get(LinkRecordRepository)
        record = await repo.find_by_farcaster_id(FarcasterId(21))
        assert record is not None and record.account_id == owner.session.account_id

    @pytest.mark.asyncio
    async def test_relink_same_fid_keeps_display_fields(self, unit_env):
        """A sign-in payload without display fields must not erase stored ones."""
        linker = await unit_env.get(AccountLinker)
        first = await linker.link(
            make_social_identity(fid=22, username="iris", pfp_url="https://img/1.png")
        )

        again = await linker.link(make_social_identity(fid=22, username="iris"))

        assert again.session.account_id == first.session.account_id
        assert again.record.farcaster_avatar_url == "https://img/1.png"


class TestBindingRace:
    """Tests for uniqueness conflicts raised at save time."""

    @pytest.mark.asyncio
    async def test_lost_race_rechecks_ownership_and_cross_links(self):
        """A wallet grabbed by a Farcaster account mid-attempt should cross-link."""
        store = InMemorySessionStore()
        credential_service = CredentialService(IDENTITY_DOMAIN)
        proof = make_wallet_proof(30)
        winner_identity = make_social_identity(fid=30, username="jane")
        winner = store.register(
            credential_service.identity_key(winner_identity),
            _secret(credential_service, winner_identity),
        )

        class RacingRepository(InMemoryLinkRecordRepository):
            raced = False

            async def upsert(self, record):
                if not self.raced and record.wallet_address == proof.address:
                    self.raced = True
                    await super().upsert(
                        LinkRecord.empty(winner.id)
                        .with_social(winner_identity)
                        .with_wallet(proof.address)
                    )
                    raise BindingConflictError("wallet_address", proof.address.root)
                return await super().upsert(record)

        linker = AccountLinker(
            credential_service=credential_service,
            session_service=SessionService(store, retry_attempts=0, retry_delay=0),
            link_service=LinkService(RacingRepository()),
            notifier=LinkNotifier(),
        )

        result = await linker.link(proof)

        assert result.outcome == LinkOutcome.CROSS_LINKED
        assert result.session.account_id == winner.id

    @pytest.mark.asyncio
    async def test_merge_conflict_at_save_is_not_retried(self):
        """With a current session a save conflict is reported as a conflict."""
        store = InMemorySessionStore()

        class ConflictRepository(InMemoryLinkRecordRepository):
            async def upsert(self, record):
                raise BindingConflictError("farcaster_fid", "31")

        linker = AccountLinker(
            credential_service=CredentialService(IDENTITY_DOMAIN),
            session_service=SessionService(store, retry_attempts=0, retry_delay=0),
            link_service=LinkService(ConflictRepository()),
            notifier=LinkNotifier(),
        )
        session = Session(
            account_id=AccountId(uuid4()),
            identity_key="wallet_x@faragent.local",
            access_token="token",
        )

        with pytest.raises(LinkConflictError):
            await linker.link(make_social_identity(fid=31), current_session=session)


class TestSecretsNeverLeak:
    """Credential pairs are never persisted."""

    @pytest.mark.asyncio
    async def test_record_holds_no_secret(self, unit_env):
        """The Link Record has no field for derived secrets."""
        linker = await unit_env.get(AccountLinker)
        credential_service = await unit_env.get(CredentialService)
        proof = make_wallet_proof(40)

        result = await linker.link(proof)

        secret = _secret(credential_service, proof)
        assert secret not in result.record.model_dump_json()
        assert isinstance(credential_service.derive(proof).secret, SecretStr)


def _linker(store, repository=None, notifier=None, retry_attempts=0) -> AccountLinker:
    return AccountLinker(
        credential_service=CredentialService(IDENTITY_DOMAIN),
        session_service=SessionService(
            store, retry_attempts=retry_attempts, retry_delay=0
        ),
        link_service=LinkService(
            repository or InMemoryLinkRecordRepository(),
            retry_attempts=retry_attempts,
            retry_delay=0,
        ),
        notifier=notifier or LinkNotifier(),
    )


class TestRegisteredSinceFirstSignIn:
    """The account can appear between the first sign-in and the sign-up."""

    @pytest.mark.asyncio
    async def test_concurrent_first_sign_ins_share_one_account(self):
        """Two tabs linking a new identity at once both end up signed in."""

        # Arrange: every store call yields, so the two attempts interleave
        class InterleavingStore(InMemorySessionStore):
            async def sign_in(self, pair):
                result = await super().sign_in(pair)
                await asyncio.sleep(0)
                return result

            async def sign_up(self, pair):
                result = await super().sign_up(pair)
                await asyncio.sleep(0)
                return result

        store = InterleavingStore()
        linker = _linker(store)
        identity = make_social_identity(fid=50, username="kate")

        # Act
        first, second = await asyncio.gather(
            linker.link(identity), linker.link(identity)
        )

        # Assert
        assert {first.outcome, second.outcome} == {
            LinkOutcome.SIGNED_UP,
            LinkOutcome.SIGNED_IN,
        }
        assert first.session.account_id == second.session.account_id
        assert store.account_count == 1

    @pytest.mark.asyncio
    async def test_lost_sign_up_response_signs_in(self):
        """A sign-up retried after its response was lost signs into the new account."""

        # Arrange: the first sign-up creates the account, then times out
        class LostResponseStore(InMemorySessionStore):
            lost = False

            async def sign_up(self, pair):
                result = await super().sign_up(pair)
                if not self.lost:
                    self.lost = True
                    raise StoreUnavailableError("Session store timed out")
                return result

        store = LostResponseStore()
        linker = _linker(store, retry_attempts=1)
        proof = make_wallet_proof(51)

        # Act
        result = await linker.link(proof)

        # Assert
        assert result.outcome == LinkOutcome.SIGNED_IN
        assert result.record.wallet_address == proof.address
        assert store.account_count == 1
        assert store.sign_up_calls == 2


class TestEventsAfterCommit:
    """Link events are only sent for committed records."""

    @pytest.mark.asyncio
    async def test_event_follows_commit(self):
        """The record is committed before listeners are called."""
        log: list[str] = []

        class CommitLoggingRepository(InMemoryLinkRecordRepository):
            async def commit(self):
                await super().commit()
                log.append("commit")

        async def on_event(event, record):
            log.append(event.value)

        notifier = LinkNotifier()
        notifier.subscribe(LinkEvent.WALLET_CONNECTED, on_event)
        linker = _linker(
            InMemorySessionStore(), CommitLoggingRepository(), notifier=notifier
        )

        await linker.link(make_wallet_proof(52))

        assert log == ["commit", LinkEvent.WALLET_CONNECTED.value]

    @pytest.mark.asyncio
    async def test_failed_commit_sends_no_event(self):
        """A commit that fails surfaces as unavailable and nobody is told."""

        class FailingCommitRepository(InMemoryLinkRecordRepository):
            async def commit(self):
                raise StoreUnavailableError("connection reset during commit")

        events: list[LinkEvent] = []

        async def on_event(event, record):
            events.append(event)

        notifier = LinkNotifier()
        notifier.subscribe(LinkEvent.FARCASTER_CONNECTED, on_event)
        linker = _linker(
            InMemorySessionStore(), FailingCommitRepository(), notifier=notifier
        )

        with pytest.raises(StoreUnavailableError):
            await linker.link(make_social_identity(fid=53))

        assert events == []


class TestLinkStoreOutage:
    """Link Store failures are retried, then surfaced as retryable."""

    @pytest.mark.asyncio
    async def test_transient_outage_is_retried(self):
        """A single failed Link Store call does not fail the link."""
        repository = InMemoryLinkRecordRepository()
        repository.fail_next = 1
        linker = _linker(InMemorySessionStore(), repository, retry_attempts=2)

        result = await linker.link(make_wallet_proof(54))

        assert result.outcome == LinkOutcome.SIGNED_UP
        assert repository.commits == 1

    @pytest.mark.asyncio
    async def test_lasting_outage_is_store_unavailable(self):
        """An outage that outlasts the retries raises a retryable error."""
        repository = InMemoryLinkRecordRepository()
        repository.fail_next = 10
        linker = _linker(InMemorySessionStore(), repository, retry_attempts=2)

        with pytest.raises(StoreUnavailableError) as exc_info:
            await linker.link(make_wallet_proof(55))

        assert exc_info.value.retryable
        assert exc_info.value.code == "store_unavailable"
