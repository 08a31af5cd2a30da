"""Sign out use case."""

import logfire
from pydantic import BaseModel

from faragent.application.usecase.base import BaseUseCase
from faragent.domain.service import SessionService


class SignOutRequest(BaseModel):
    """Sign out request."""

    access_token: str | None


class SignOutResponse(BaseModel):
    """Sign out response."""

    success: bool
    message: str


class SignOutUseCase(BaseUseCase):
    """Use case for revoking the caller's session."""

    def __init__(self, session_service: SessionService) -> None:
        """Initialize use case.

        Args:
            session_service: Session Store domain service
        """
        self.session_service = session_service

    async def execute(self, request: SignOutRequest) -> SignOutResponse:
        """Revoke the session; linked identities stay linked.

        Raises:
            NotAuthenticatedError: If the token is missing or invalid
        """
        account = await self.session_service.require_account(request.access_token)
        await self.session_service.sign_out(request.access_token)
        logfire.info("Signed out", account_id=str(account.id))
        return SignOutResponse(success=True, message="Successfully signed out")
