"""Domain layer DI providers."""

from dishka import Scope, provide

from faragent.config import SessionStoreSettings, Settings
from faragent.domain.repository import LinkRecordRepository
from faragent.domain.service import (
    AccountLinker,
    CredentialService,
    LinkNotifier,
    LinkService,
    SessionService,
    SessionStore,
    SignatureService,
)
from faragent.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Domain services are REQUEST-scoped to align with repository/session lifecycle.
    Each HTTP request gets fresh service instances with their own transaction.
    """

    scope = Scope.REQUEST

    @provide
    def get_credential_service(self, settings: Settings) -> CredentialService:
        """Provide credential derivation service."""
        return CredentialService(identity_domain=settings.credentials.identity_domain)

    @provide
    def get_signature_service(self, settings: Settings) -> SignatureService:
        """Provide wallet challenge / proof service."""
        return SignatureService(
            statement=settings.wallet.challenge_statement,
            chain_id=settings.wallet.chain_id,
        )

    @provide
    def get_session_service(
        self, session_store: SessionStore, session_store_settings: SessionStoreSettings
    ) -> SessionService:
        """Provide session domain service with the configured retry bounds."""
        return SessionService(
            session_store=session_store,
            retry_attempts=session_store_settings.retry_attempts,
            retry_delay=session_store_settings.retry_delay,
        )

    @provide
    def get_link_service(
        self, link_record_repository: LinkRecordRepository, settings: Settings
    ) -> LinkService:
        """Provide link record domain service with the configured retry bounds."""
        return LinkService(
            link_record_repository=link_record_repository,
            retry_attempts=settings.database.retry_attempts,
            retry_delay=settings.database.retry_delay,
        )

    @provide(scope=Scope.APP)
    def get_link_notifier(self) -> LinkNotifier:
        """Provide the link event notifier.

        App-scoped so that listeners outlive single requests.
        """
        return LinkNotifier()

    @provide
    def get_account_linker(
        self,
        credential_service: CredentialService,
        session_service: SessionService,
        link_service: LinkService,
        notifier: LinkNotifier,
    ) -> AccountLinker:
        """Provide account linking domain service."""
        return AccountLinker(
            credential_service=credential_service,
            session_service=session_service,
            link_service=link_service,
            notifier=notifier,
        )
