"""Create wallet challenge use case."""

from pydantic import BaseModel

from faragent.application.usecase.base import BaseUseCase
from faragent.config import Settings
from faragent.domain.service import SignatureService


class CreateChallengeRequest(BaseModel):
    """Request for the message a wallet must sign."""

    address: str


class CreateChallengeResponse(BaseModel):
    """Canonical challenge for an address."""

    address: str
    message: str
    chain_id: int


class CreateChallengeUseCase(BaseUseCase):
    """Use case for building the canonical wallet challenge."""

    def __init__(self, signature_service: SignatureService, settings: Settings) -> None:
        """Initialize use case.

        Args:
            signature_service: Challenge and proof domain service
            settings: Application settings
        """
        self.signature_service = signature_service
        self.settings = settings

    async def execute(self, request: CreateChallengeRequest) -> CreateChallengeResponse:
        """Build the challenge for the frontend origin.

        Raises:
            InvalidSignatureFormatError: If the address is malformed
        """
        address = self.signature_service.normalize_address(request.address)
        message = self.signature_service.build_challenge(
            address, self.settings.api.frontend_url
        )
        return CreateChallengeResponse(
            address=address.root,
            message=message,
            chain_id=self.signature_service.chain_id,
        )
