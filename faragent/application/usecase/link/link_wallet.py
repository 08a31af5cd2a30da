"""Link wallet use case."""

import logfire
from pydantic import BaseModel

from faragent.application.usecase.base import BaseUseCase
from faragent.application.usecase.link.response import LinkResponse
from faragent.domain.error import LinkingError
from faragent.domain.service import AccountLinker, SessionService, SignatureService


class LinkWalletRequest(BaseModel):
    """Signed challenge submitted by the client."""

    address: str
    message: str
    signature: str
    access_token: str | None = None  # Current session, if signed in


class LinkWalletUseCase(BaseUseCase):
    """Use case for signing in with, or connecting, a wallet."""

    def __init__(
        self,
        signature_service: SignatureService,
        session_service: SessionService,
        account_linker: AccountLinker,
    ) -> None:
        """Initialize use case.

        Args:
            signature_service: Challenge and proof domain service
            session_service: Session Store domain service
            account_linker: Account linking domain service
        """
        self.signature_service = signature_service
        self.session_service = session_service
        self.account_linker = account_linker

    async def execute(self, request: LinkWalletRequest) -> LinkResponse:
        """Execute wallet link flow.

        Steps:
        1. Normalize and check the signed challenge
        2. Resolve the caller's session, if a token was sent
        3. Link the wallet (sign in, sign up, migrate, cross-link or merge)

        Args:
            request: Address, signed message and signature

        Returns:
            Link response; failures are reported in it, not raised

        Raises:
            NotAuthenticatedError: If a token was sent but is not valid
        """
        with logfire.span("link_wallet", address=request.address.lower()):
            try:
                proof = self.signature_service.verify(
                    request.address, request.message, request.signature
                )
                current_session = await self.session_service.current_session(
                    request.access_token
                )
                result = await self.account_linker.link(proof, current_session)
            except LinkingError as e:
                logfire.warn("Wallet link failed", code=e.code, error=e.message)
                return LinkResponse.failed(e)

            return LinkResponse.succeeded(result)
