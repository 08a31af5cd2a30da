"""Disconnect Farcaster use case."""

import logfire
from pydantic import BaseModel

from faragent.application.usecase.base import BaseUseCase
from faragent.application.usecase.connection.response import ConnectionsResponse
from faragent.application.usecase.link.response import ConnectionView
from faragent.domain.error import NotFoundError
from faragent.domain.service import LinkService, SessionService


class DisconnectFarcasterRequest(BaseModel):
    """Disconnect Farcaster request."""

    access_token: str | None


class DisconnectFarcasterUseCase(BaseUseCase):
    """Use case for removing Farcaster from the caller's Link Record."""

    def __init__(
        self, session_service: SessionService, link_service: LinkService
    ) -> None:
        self.session_service = session_service
        self.link_service = link_service

    async def execute(self, request: DisconnectFarcasterRequest) -> ConnectionsResponse:
        """Clear the social fields and signer token; the wallet is kept.

        Raises:
            NotAuthenticatedError: If the token is missing or invalid
            NotFoundError: If no Farcaster account is linked
        """
        account = await self.session_service.require_account(request.access_token)
        record = await self.link_service.get_record(account.id)
        if record is None or not record.has_farcaster:
            raise NotFoundError("Farcaster link", str(account.id))

        saved = await self.link_service.save(record.without_social())
        logfire.info("Farcaster disconnected", account_id=str(account.id))

        return ConnectionsResponse(
            account_id=str(account.id), connection=ConnectionView.from_record(saved)
        )
