"""Reset social credential use case (admin)."""

import logfire
from pydantic import BaseModel

from faragent.application.usecase.base import BaseUseCase
from faragent.domain.error import NotFoundError, ValidationError
from faragent.domain.service import CredentialService, LinkService, SessionService
from faragent.domain.value import (
    DerivationVariant,
    FarcasterHandle,
    FarcasterId,
    SocialIdentity,
)


class ResetSocialCredentialRequest(BaseModel):
    """Account to reset, by Farcaster id."""

    fid: int
    username: str | None = None  # Defaults to the handle in the Link Record


class ResetSocialCredentialResponse(BaseModel):
    """Reset result."""

    account_id: str
    identity_key: str
    variant: DerivationVariant


class ResetSocialCredentialUseCase(BaseUseCase):
    """Use case for setting a Farcaster account's secret to the current variant.

    Recovers accounts stuck on a secret no candidate reproduces, for example
    after a handle change that was never migrated.
    """

    def __init__(
        self,
        credential_service: CredentialService,
        session_service: SessionService,
        link_service: LinkService,
    ) -> None:
        """Initialize use case.

        Args:
            credential_service: Credential derivation domain service
            session_service: Session Store domain service
            link_service: Link record domain service
        """
        self.credential_service = credential_service
        self.session_service = session_service
        self.link_service = link_service

    async def execute(
        self, request: ResetSocialCredentialRequest
    ) -> ResetSocialCredentialResponse:
        """Execute reset.

        Raises:
            NotFoundError: If no account exists for the fid
            ValidationError: If no handle is given and none is stored
        """
        fid = FarcasterId(request.fid)
        identity_key = self.credential_service.social_identity_key(fid)

        account = await self.session_service.find_account(identity_key)
        if account is None:
            raise NotFoundError("Account", identity_key)

        if request.username:
            handle = FarcasterHandle(request.username)
        else:
            record = await self.link_service.find_farcaster_owner(fid)
            if record is None or record.farcaster_handle is None:
                raise ValidationError(
                    f"No stored handle for fid {fid.root}; pass the username"
                )
            handle = record.farcaster_handle

        pair = self.credential_service.derive(SocialIdentity(fid=fid, username=handle))
        with logfire.span(
            "reset_social_credential", fid=fid.root, account_id=str(account.id)
        ):
            await self.session_service.admin_update_secret(account.id, pair.secret)

        return ResetSocialCredentialResponse(
            account_id=str(account.id),
            identity_key=identity_key,
            variant=pair.variant,
        )
