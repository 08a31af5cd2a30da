"""Connect wallet use case (server-side wallet provider)."""

import logfire
from pydantic import BaseModel

from faragent.adapter.wallet.chain import ensure_chain, is_supported_chain, read_chain_id
from faragent.adapter.wallet.provider import select_provider
from faragent.application.usecase.base import BaseUseCase
from faragent.application.usecase.link.response import LinkResponse
from faragent.config import Settings
from faragent.domain.error import LinkingError, NotAuthenticatedError
from faragent.domain.service import (
    AccountLinker,
    ProviderRpcError,
    SessionService,
    SignatureService,
    WalletProvider,
)


class ConnectWalletRequest(BaseModel):
    """Request to connect through a configured wallet provider."""

    wallet_type: str | None = None  # core, coinbase, metamask...
    access_token: str | None


class ConnectWalletUseCase(BaseUseCase):
    """Use case driving a wallet provider through chain switch and signing.

    The provider is an operator-configured signer, so it only connects into
    an existing session and never signs anyone in.
    """

    def __init__(
        self,
        signature_service: SignatureService,
        session_service: SessionService,
        account_linker: AccountLinker,
        wallet_providers: list[WalletProvider],
        settings: Settings,
    ) -> None:
        """Initialize use case.

        Args:
            signature_service: Challenge and proof domain service
            session_service: Session Store domain service
            account_linker: Account linking domain service
            wallet_providers: Available EIP-1193 providers
            settings: Application settings
        """
        self.signature_service = signature_service
        self.session_service = session_service
        self.account_linker = account_linker
        self.wallet_providers = wallet_providers
        self.settings = settings

    async def execute(self, request: ConnectWalletRequest) -> LinkResponse:
        """Execute connect flow.

        Steps:
        1. Pick the provider for the requested wallet type
        2. Switch it to the configured chain (adding the chain if needed)
        3. Request accounts and a signature over the canonical challenge
        4. Link the resulting proof

        Args:
            request: Preferred wallet type and session token

        Returns:
            Link response; failures are reported in it, not raised

        Raises:
            NotAuthenticatedError: If the token is missing or invalid
        """
        provider = select_provider(self.wallet_providers, request.wallet_type)

        with logfire.span(
            "connect_wallet", wallet_type=provider.name if provider else None
        ):
            try:
                current_session = await self.session_service.current_session(
                    request.access_token
                )
                if current_session is None:
                    raise NotAuthenticatedError()

                if provider is not None:
                    chain_id = self.settings.wallet.chain_id
                    if not await ensure_chain(provider, chain_id):
                        # Signing does not depend on the active chain
                        active = await self._active_chain(provider)
                        logfire.warn(
                            "Wallet did not switch chain",
                            chain_id=chain_id,
                            active_chain_id=active,
                            supported=is_supported_chain(active),
                        )

                proof = await self.signature_service.request_proof(
                    provider, self.settings.api.frontend_url
                )
                result = await self.account_linker.link(proof, current_session)
            except LinkingError as e:
                logfire.warn("Wallet connect failed", code=e.code, error=e.message)
                return LinkResponse.failed(e)

            return LinkResponse.succeeded(result)

    @staticmethod
    async def _active_chain(provider: WalletProvider) -> int | None:
        try:
            return await read_chain_id(provider)
        except (ProviderRpcError, TypeError, ValueError):
            return None
