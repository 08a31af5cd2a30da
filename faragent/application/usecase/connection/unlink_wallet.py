"""Unlink wallet use case."""

import logfire
from pydantic import BaseModel

from faragent.application.usecase.base import BaseUseCase
from faragent.application.usecase.connection.response import ConnectionsResponse
from faragent.application.usecase.link.response import ConnectionView
from faragent.domain.error import NotFoundError
from faragent.domain.service import LinkService, SessionService


class UnlinkWalletRequest(BaseModel):
    """Unlink wallet request."""

    access_token: str | None


class UnlinkWalletUseCase(BaseUseCase):
    """Use case for removing the wallet from the caller's Link Record."""

    def __init__(
        self, session_service: SessionService, link_service: LinkService
    ) -> None:
        """Initialize use case.

        Args:
            session_service: Session Store domain service
            link_service: Link record domain service
        """
        self.session_service = session_service
        self.link_service = link_service

    async def execute(self, request: UnlinkWalletRequest) -> ConnectionsResponse:
        """Clear the wallet fields only; Farcaster fields are kept.

        The Session Store account is not touched, so a wallet-created account
        can still be signed into with the same wallet.

        Raises:
            NotAuthenticatedError: If the token is missing or invalid
            NotFoundError: If no wallet is linked
        """
        account = await self.session_service.require_account(request.access_token)
        record = await self.link_service.get_record(account.id)
        if record is None or not record.has_wallet:
            raise NotFoundError("Wallet link", str(account.id))

        saved = await self.link_service.save(record.without_wallet())
        logfire.info("Wallet unlinked", account_id=str(account.id))

        return ConnectionsResponse(
            account_id=str(account.id), connection=ConnectionView.from_record(saved)
        )
