"""Account linking.

Decides, for a newly verified wallet or Farcaster identity, whether to sign
in, sign up, migrate a legacy credential, cross-link into the account that
already holds the identity, merge into the current session's account, or
reject with a conflict. Then persists the Link Record and notifies.
"""

import logfire

from faragent.domain.error import (
    BindingConflictError,
    LinkConflictError,
    LinkingError,
    StoreUnavailableError,
)
from faragent.domain.model.account import AuthFailure, Session
from faragent.domain.model.common import DomainModel
from faragent.domain.model.link_record import LinkRecord
from faragent.domain.value import (
    CredentialPair,
    LinkEvent,
    LinkOutcome,
    SocialIdentity,
    VerifiedIdentity,
    WalletProof,
)

from .base import Service
from .credential_service import CredentialService
from .link_service import LinkService
from .notifier import LinkNotifier
from .session_service import SessionService


class LinkResult(DomainModel):
    """Outcome of a successful link."""

    outcome: LinkOutcome
    session: Session
    record: LinkRecord


def describe(identity: VerifiedIdentity) -> str:
    """Human-readable name of an identity for error messages."""
    if isinstance(identity, WalletProof):
        return f"Wallet {identity.address.root}"
    return f"Farcaster account @{identity.username.root}"


class AccountLinker(Service):
    """Orchestrates linking a verified identity to a Session Store account.

    Steps within one attempt are sequential. Concurrent attempts for the
    same identity are not serialized. A sign-up that finds the identity
    already registered falls back to sign-in, and the Link Store uniqueness
    constraints turn a lost binding race into one extra ownership check.
    """

    def __init__(
        self,
        credential_service: CredentialService,
        session_service: SessionService,
        link_service: LinkService,
        notifier: LinkNotifier,
    ) -> None:
        """Initialize account linker.

        Args:
            credential_service: Credential derivation
            session_service: Session Store operations
            link_service: Link Store operations
            notifier: Link event fan-out
        """
        self.credential_service = credential_service
        self.session_service = session_service
        self.link_service = link_service
        self.notifier = notifier

    async def link(
        self, identity: VerifiedIdentity, current_session: Session | None = None
    ) -> LinkResult:
        """Link a verified identity.

        With a current session the identity is merged into that account and
        the session is kept. Without one, a session is established for the
        identity first.

        Args:
            identity: Wallet proof or verified Farcaster identity
            current_session: Session of the signed-in user, if any

        Returns:
            Link result with the session to use and the stored record

        Raises:
            LinkConflictError: If the identity belongs to an account this
                attempt cannot access
            StoreUnavailableError: If a store stays unreachable after retries
        """
        with logfire.span(
            "account_linker.link",
            kind=identity.kind.value,
            has_session=current_session is not None,
        ):
            if current_session is not None:
                return await self._merge_into(identity, current_session)

            session, outcome = await self._establish_session(identity)
            return await self._persist(identity, session, outcome)

    async def _merge_into(
        self, identity: VerifiedIdentity, current_session: Session
    ) -> LinkResult:
        owner = await self._find_owner(identity)
        if owner is not None and owner.account_id != current_session.account_id:
            logfire.warn(
                "Identity bound to a different account",
                kind=identity.kind.value,
                owner_account_id=str(owner.account_id),
                account_id=str(current_session.account_id),
            )
            raise LinkConflictError(
                f"{describe(identity)} is already linked to a different account.",
                remedy="Sign out and sign in with that identity instead.",
            )
        return await self._persist(identity, current_session, LinkOutcome.MERGED)

    async def _establish_session(
        self, identity: VerifiedIdentity
    ) -> tuple[Session, LinkOutcome]:
        candidates = self.credential_service.candidates(identity)
        current = candidates[0]

        result = await self.session_service.sign_in(current)
        if isinstance(result, Session):
            return result, LinkOutcome.SIGNED_IN

        owner = await self._find_owner(identity)
        if owner is not None:
            return await self._recover_bound_identity(identity, owner, candidates)

        result = await self.session_service.sign_up(current)
        if isinstance(result, Session):
            return result, LinkOutcome.SIGNED_UP

        if not result.already_registered:
            raise LinkingError(
                f"Could not create an account for {describe(identity)}: {result.message}"
            )

        # Registered after step 2 by a concurrent attempt, or by a sign-up whose
        # response was lost and retried
        established = await self._sign_in_current_or_legacy(candidates)
        if established is not None:
            return established

        raise LinkConflictError(
            f"An account for {describe(identity)} already exists but none of its "
            "known credentials were accepted.",
            remedy="Contact support to reset access for this account.",
        )

    async def _recover_bound_identity(
        self,
        identity: VerifiedIdentity,
        owner: LinkRecord,
        candidates: list[CredentialPair],
    ) -> tuple[Session, LinkOutcome]:
        """Sign into the account whose Link Record already holds the identity."""
        current = candidates[0]

        # The record may have been written after step 2 by a concurrent attempt
        established = await self._sign_in_current_or_legacy(candidates)
        if established is not None:
            return established

        if isinstance(identity, SocialIdentity):
            # Handle renamed since the account was created
            if owner.farcaster_handle and owner.farcaster_handle != identity.username:
                stored = self.credential_service.social_candidates(
                    identity.fid, owner.farcaster_handle
                )
                session = await self._sign_in_any(stored, current)
                if session is not None:
                    return session, LinkOutcome.MIGRATED

            if owner.wallet_address is not None:
                raise LinkConflictError(
                    f"{describe(identity)} is already linked to wallet "
                    f"{owner.wallet_address.root}.",
                    remedy="Sign in with that wallet first, then connect Farcaster.",
                )
            raise LinkConflictError(
                f"{describe(identity)} is already linked to another account.",
                remedy="Contact support to reset access for this account.",
            )

        return await self._cross_link(identity, owner)

    async def _cross_link(
        self, identity: WalletProof, owner: LinkRecord
    ) -> tuple[Session, LinkOutcome]:
        """Sign into the Farcaster account that already holds a wallet."""
        if owner.farcaster_id is None or owner.farcaster_handle is None:
            raise LinkConflictError(
                f"{describe(identity)} is already linked to another account.",
                remedy="Sign in to the account that holds this wallet to manage it.",
            )

        social = self.credential_service.social_candidates(
            owner.farcaster_id, owner.farcaster_handle
        )
        with logfire.span(
            "account_linker.cross_link",
            address=identity.address.root,
            fid=owner.farcaster_id.root,
        ):
            session = await self._sign_in_any(social, social[0])
            if session is not None:
                return session, LinkOutcome.CROSS_LINKED

        raise LinkConflictError(
            f"{describe(identity)} is already linked to Farcaster account "
            f"@{owner.farcaster_handle.root}.",
            remedy="Sign in with Farcaster first, then connect this wallet.",
        )

    async def _sign_in_current_or_legacy(
        self, candidates: list[CredentialPair]
    ) -> tuple[Session, LinkOutcome] | None:
        """Current pair first, then the legacy pairs with self-heal."""
        current = candidates[0]
        result = await self.session_service.sign_in(current)
        if isinstance(result, Session):
            return result, LinkOutcome.SIGNED_IN

        session = await self._sign_in_any(candidates[1:], current)
        if session is not None:
            return session, LinkOutcome.MIGRATED
        return None

    async def _sign_in_any(
        self, pairs: list[CredentialPair], current: CredentialPair
    ) -> Session | None:
        """Try pairs in order; on a non-current hit rewrite the secret to current."""
        for pair in pairs:
            result = await self.session_service.sign_in(pair)
            if isinstance(result, AuthFailure):
                continue

            if pair.secret != current.secret:
                await self._heal(result, pair, current)
            return result
        return None

    async def _heal(
        self, session: Session, used: CredentialPair, current: CredentialPair
    ) -> None:
        logfire.info(
            "Migrating account to current credential",
            account_id=str(session.account_id),
            from_variant=used.variant.value,
            legacy=used.is_legacy,
            to_variant=current.variant.value,
        )
        try:
            await self.session_service.update_secret(session, current.secret)
        except StoreUnavailableError as e:
            # The legacy secret keeps working; migration is retried next sign-in
            logfire.warn(
                "Credential migration failed",
                account_id=str(session.account_id),
                error=str(e),
            )

    async def _find_owner(self, identity: VerifiedIdentity) -> LinkRecord | None:
        if isinstance(identity, WalletProof):
            return await self.link_service.find_wallet_owner(identity.address)
        return await self.link_service.find_farcaster_owner(identity.fid)

    async def _persist(
        self,
        identity: VerifiedIdentity,
        session: Session,
        outcome: LinkOutcome,
        retried: bool = False,
    ) -> LinkResult:
        record = await self.link_service.get_or_empty(session.account_id)
        merged = self._merge(record, identity)

        try:
            saved = await self.link_service.save(merged)
        except BindingConflictError as e:
            if retried or outcome == LinkOutcome.MERGED:
                raise LinkConflictError(
                    f"{describe(identity)} is already linked to a different account.",
                    remedy="Sign in with that identity instead.",
                ) from e

            logfire.warn(
                "Binding conflict on save, re-checking ownership",
                field=e.field,
                account_id=str(session.account_id),
            )
            owner = await self._find_owner(identity)
            if owner is None or owner.account_id == session.account_id:
                return await self._persist(identity, session, outcome, retried=True)
            if not isinstance(identity, WalletProof):
                raise LinkConflictError(
                    f"{describe(identity)} is already linked to a different account.",
                    remedy="Sign in with the identity that account was created with.",
                ) from e
            session, outcome = await self._cross_link(identity, owner)
            return await self._persist(identity, session, outcome, retried=True)

        # Listeners must only ever see committed records
        await self.link_service.commit()

        event = (
            LinkEvent.WALLET_CONNECTED
            if isinstance(identity, WalletProof)
            else LinkEvent.FARCASTER_CONNECTED
        )
        await self.notifier.emit(event, saved)

        logfire.info(
            "Identity linked",
            kind=identity.kind.value,
            outcome=outcome.value,
            account_id=str(session.account_id),
        )
        return LinkResult(outcome=outcome, session=session, record=saved)

    @staticmethod
    def _merge(record: LinkRecord, identity: VerifiedIdentity) -> LinkRecord:
        if isinstance(identity, WalletProof):
            return record.with_wallet(identity.address)
        return record.with_social(identity)
