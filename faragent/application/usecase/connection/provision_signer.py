"""Provision Farcaster signer use case."""

import logfire
from pydantic import BaseModel

from faragent.application.usecase.base import BaseUseCase
from faragent.application.usecase.link.response import ConnectionView
from faragent.domain.error import ValidationError
from faragent.domain.service import LinkService, SessionService, SignerClient

REVOKED = "revoked"


class ProvisionSignerRequest(BaseModel):
    """Provision signer request."""

    access_token: str | None


class ProvisionSignerResponse(BaseModel):
    """Signer the user has to approve (or already approved)."""

    signer_uuid: str
    status: str
    approval_url: str | None
    connection: ConnectionView


class ProvisionSignerUseCase(BaseUseCase):
    """Use case for attaching a managed signer to the linked Farcaster account."""

    def __init__(
        self,
        session_service: SessionService,
        link_service: LinkService,
        signer_client: SignerClient,
    ) -> None:
        """Initialize use case.

        Args:
            session_service: Session Store domain service
            link_service: Link record domain service
            signer_client: Signer provisioning client (Neynar)
        """
        self.session_service = session_service
        self.link_service = link_service
        self.signer_client = signer_client

    async def execute(self, request: ProvisionSignerRequest) -> ProvisionSignerResponse:
        """Reuse the stored signer unless revoked, otherwise create one.

        Steps:
        1. Load the caller's Link Record (Farcaster must be linked)
        2. Check the stored signer's status, if any
        3. Create a new signer when there is none or it was revoked
        4. Refresh display fields from the public profile and store the token

        Raises:
            NotAuthenticatedError: If the token is missing or invalid
            ValidationError: If no Farcaster account is linked
            NeynarError: If the signer service fails
        """
        account = await self.session_service.require_account(request.access_token)
        record = await self.link_service.get_record(account.id)
        if record is None or record.farcaster_id is None:
            raise ValidationError("Connect a Farcaster account before adding a signer")

        with logfire.span(
            "provision_signer",
            account_id=str(account.id),
            fid=record.farcaster_id.root,
        ):
            signer = None
            if record.social_signer_token:
                signer = await self.signer_client.get_signer_status(
                    record.social_signer_token
                )
                if signer.status == REVOKED:
                    logfire.info("Stored signer revoked, creating a new one")
                    signer = None

            if signer is None:
                signer = await self.signer_client.create_signer()
                logfire.info("Signer created", signer_uuid=signer.signer_uuid)

            profile = await self.signer_client.lookup_user_by_fid(record.farcaster_id)
            saved = await self.link_service.save(
                record.with_signer(
                    signer.signer_uuid,
                    display_name=profile.display_name if profile else None,
                    avatar_url=profile.pfp_url if profile else None,
                )
            )

            return ProvisionSignerResponse(
                signer_uuid=signer.signer_uuid,
                status=signer.status,
                approval_url=signer.approval_url,
                connection=ConnectionView.from_record(saved),
            )
