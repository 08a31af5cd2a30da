"""Application layer DI providers."""

from collections.abc import AsyncIterator

from dishka import AsyncContainer, Scope, provide

from faragent.adapter.farcaster.relay import RelayClient
from faragent.adapter.farcaster.signin import PollPolicy
from faragent.application.signin_registry import SignInRegistry
from faragent.application.usecase.admin import ResetSocialCredentialUseCase
from faragent.application.usecase.auth import SignOutUseCase
from faragent.application.usecase.connection import (
    DisconnectFarcasterUseCase,
    GetConnectionsUseCase,
    ProvisionSignerUseCase,
    UnlinkWalletUseCase,
)
from faragent.application.usecase.link import (
    ConnectWalletUseCase,
    CreateChallengeUseCase,
    LinkFarcasterUseCase,
    LinkWalletUseCase,
)
from faragent.config import RelaySettings, Settings
from faragent.domain.service import (
    AccountLinker,
    CredentialService,
    LinkService,
    SessionService,
    SignatureService,
    SignerClient,
    WalletProvider,
)
from faragent.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    # Linking use cases
    @provide(scope=Scope.REQUEST)
    def get_create_challenge_use_case(
        self, signature_service: SignatureService, settings: Settings
    ) -> CreateChallengeUseCase:
        """Provide create challenge use case."""
        return CreateChallengeUseCase(
            signature_service=signature_service, settings=settings
        )

    @provide(scope=Scope.REQUEST)
    def get_link_wallet_use_case(
        self,
        signature_service: SignatureService,
        session_service: SessionService,
        account_linker: AccountLinker,
    ) -> LinkWalletUseCase:
        """Provide link wallet use case."""
        return LinkWalletUseCase(
            signature_service=signature_service,
            session_service=session_service,
            account_linker=account_linker,
        )

    @provide(scope=Scope.REQUEST)
    def get_connect_wallet_use_case(
        self,
        signature_service: SignatureService,
        session_service: SessionService,
        account_linker: AccountLinker,
        wallet_providers: list[WalletProvider],
        settings: Settings,
    ) -> ConnectWalletUseCase:
        """Provide connect wallet use case."""
        return ConnectWalletUseCase(
            signature_service=signature_service,
            session_service=session_service,
            account_linker=account_linker,
            wallet_providers=wallet_providers,
            settings=settings,
        )

    @provide(scope=Scope.REQUEST)
    def get_link_farcaster_use_case(
        self, account_linker: AccountLinker
    ) -> LinkFarcasterUseCase:
        """Provide link Farcaster use case."""
        return LinkFarcasterUseCase(account_linker=account_linker)

    @provide(scope=Scope.REQUEST)
    def get_sign_out_use_case(self, session_service: SessionService) -> SignOutUseCase:
        """Provide sign out use case."""
        return SignOutUseCase(session_service=session_service)

    # Connection use cases
    @provide(scope=Scope.REQUEST)
    def get_get_connections_use_case(
        self, session_service: SessionService, link_service: LinkService
    ) -> GetConnectionsUseCase:
        """Provide get connections use case."""
        return GetConnectionsUseCase(
            session_service=session_service, link_service=link_service
        )

    @provide(scope=Scope.REQUEST)
    def get_unlink_wallet_use_case(
        self, session_service: SessionService, link_service: LinkService
    ) -> UnlinkWalletUseCase:
        """Provide unlink wallet use case."""
        return UnlinkWalletUseCase(
            session_service=session_service, link_service=link_service
        )

    @provide(scope=Scope.REQUEST)
    def get_disconnect_farcaster_use_case(
        self, session_service: SessionService, link_service: LinkService
    ) -> DisconnectFarcasterUseCase:
        """Provide disconnect Farcaster use case."""
        return DisconnectFarcasterUseCase(
            session_service=session_service, link_service=link_service
        )

    @provide(scope=Scope.REQUEST)
    def get_provision_signer_use_case(
        self,
        session_service: SessionService,
        link_service: LinkService,
        signer_client: SignerClient,
    ) -> ProvisionSignerUseCase:
        """Provide provision signer use case."""
        return ProvisionSignerUseCase(
            session_service=session_service,
            link_service=link_service,
            signer_client=signer_client,
        )

    # Admin use cases
    @provide(scope=Scope.REQUEST)
    def get_reset_social_credential_use_case(
        self,
        credential_service: CredentialService,
        session_service: SessionService,
        link_service: LinkService,
    ) -> ResetSocialCredentialUseCase:
        """Provide reset social credential use case."""
        return ResetSocialCredentialUseCase(
            credential_service=credential_service,
            session_service=session_service,
            link_service=link_service,
        )

    # Sign-in attempts outlive requests
    @provide(scope=Scope.APP)
    async def get_signin_registry(
        self,
        container: AsyncContainer,
        relay: RelayClient,
        policy: PollPolicy,
        relay_settings: RelaySettings,
    ) -> AsyncIterator[SignInRegistry]:
        """Provide the sign-in registry, cancelling open attempts on shutdown."""
        registry = SignInRegistry(
            container=container,
            relay=relay,
            policy=policy,
            relay_settings=relay_settings,
        )
        yield registry
        await registry.close()
