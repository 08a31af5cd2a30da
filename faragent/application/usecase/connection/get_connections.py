"""Get connections use case."""

from pydantic import BaseModel

from faragent.application.usecase.base import BaseUseCase
from faragent.application.usecase.connection.response import ConnectionsResponse
from faragent.application.usecase.link.response import ConnectionView
from faragent.domain.service import LinkService, SessionService


class GetConnectionsRequest(BaseModel):
    """Get connections request."""

    access_token: str | None


class GetConnectionsUseCase(BaseUseCase):
    """Use case for loading the caller's Link Record."""

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

    async def execute(self, request: GetConnectionsRequest) -> ConnectionsResponse:
        """Load the caller's linked identities.

        Raises:
            NotAuthenticatedError: If the token is missing or invalid
        """
        account = await self.session_service.require_account(request.access_token)
        record = await self.link_service.get_record(account.id)

        return ConnectionsResponse(
            account_id=str(account.id),
            connection=ConnectionView.from_record(record) if record else None,
        )
