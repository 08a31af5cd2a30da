"""Link Farcaster use case."""

import logfire
from pydantic import BaseModel

from faragent.application.usecase.base import BaseUseCase
from faragent.application.usecase.link.response import LinkResponse
from faragent.domain.error import LinkingError
from faragent.domain.model.account import Session
from faragent.domain.service import AccountLinker
from faragent.domain.value import SocialIdentity


class LinkFarcasterRequest(BaseModel):
    """Identity verified by a completed relay sign-in."""

    identity: SocialIdentity
    current_session: Session | None = None


class LinkFarcasterUseCase(BaseUseCase):
    """Use case for signing in with, or connecting, a Farcaster account."""

    def __init__(self, account_linker: AccountLinker) -> None:
        """Initialize use case.

        Args:
            account_linker: Account linking domain service
        """
        self.account_linker = account_linker

    async def execute(self, request: LinkFarcasterRequest) -> LinkResponse:
        """Link a verified Farcaster identity.

        Args:
            request: Identity and the session that started the sign-in

        Returns:
            Link response; failures are reported in it, not raised
        """
        identity = request.identity
        with logfire.span("link_farcaster", fid=identity.fid.root):
            try:
                result = await self.account_linker.link(
                    identity, request.current_session
                )
            except LinkingError as e:
                logfire.warn(
                    "Farcaster link failed",
                    fid=identity.fid.root,
                    code=e.code,
                    error=e.message,
                )
                return LinkResponse.failed(e)

            return LinkResponse.succeeded(result)
