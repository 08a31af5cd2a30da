"""Response models shared by the linking use cases."""

from datetime import datetime

from pydantic import BaseModel

from faragent.domain.error import LinkingError
from faragent.domain.model.link_record import LinkRecord
from faragent.domain.service import LinkResult
from faragent.domain.value import LinkOutcome


class ConnectionView(BaseModel):
    """Public view of a Link Record."""

    account_id: str
    wallet_address: str | None
    farcaster_fid: int | None
    farcaster_username: str | None
    farcaster_display_name: str | None
    farcaster_pfp_url: str | None
    has_signer: bool
    updated_at: datetime | None

    @classmethod
    def from_record(cls, record: LinkRecord) -> "ConnectionView":
        return cls(
            account_id=str(record.account_id),
            wallet_address=record.wallet_address.root if record.wallet_address else None,
            farcaster_fid=record.farcaster_id.root if record.farcaster_id else None,
            farcaster_username=record.farcaster_handle.root
            if record.farcaster_handle
            else None,
            farcaster_display_name=record.farcaster_display_name,
            farcaster_pfp_url=record.farcaster_avatar_url,
            has_signer=record.social_signer_token is not None,
            updated_at=record.updated_at,
        )


class LinkFailure(BaseModel):
    """User-facing description of a failed link attempt."""

    code: str
    message: str
    remedy: str
    retryable: bool

    @classmethod
    def from_error(cls, error: LinkingError) -> "LinkFailure":
        return cls(
            code=error.code,
            message=error.message,
            remedy=error.remedy,
            retryable=error.retryable,
        )

    def to_error(self) -> LinkingError:
        """Rebuild the error this failure was made from."""
        error_types = {LinkingError.code: LinkingError}
        error_types.update({cls.code: cls for cls in LinkingError.__subclasses__()})
        error_type = error_types.get(self.code, LinkingError)
        return error_type(self.message, remedy=self.remedy)


class LinkResponse(BaseModel):
    """Result of a link attempt.

    On success the session tokens belong to the account the identity is now
    linked to; the client switches to them unless the outcome is MERGED.
    """

    linked: bool
    outcome: LinkOutcome | None = None
    account_id: str | None = None
    access_token: str | None = None
    refresh_token: str | None = None
    connection: ConnectionView | None = None
    failure: LinkFailure | None = None

    @classmethod
    def succeeded(cls, result: LinkResult) -> "LinkResponse":
        return cls(
            linked=True,
            outcome=result.outcome,
            account_id=str(result.session.account_id),
            access_token=result.session.access_token,
            refresh_token=result.session.refresh_token,
            connection=ConnectionView.from_record(result.record),
        )

    @classmethod
    def failed(cls, error: LinkingError) -> "LinkResponse":
        return cls(linked=False, failure=LinkFailure.from_error(error))
