"""Session Store entities.

Accounts and sessions are owned by the hosted auth service; these models
are the subset of its state the linking logic reads.
"""

from faragent.domain.model.common import DomainModel
from faragent.domain.value import AccountId, AuthFailureReason


class Account(DomainModel):
    """Session Store account. Exactly one per synthetic identity key."""

    id: AccountId
    identity_key: str


class Session(DomainModel):
    """Authenticated session bound to one account."""

    account_id: AccountId
    identity_key: str
    access_token: str
    refresh_token: str | None = None


class AuthFailure(DomainModel):
    """Rejected sign-in or sign-up."""

    reason: AuthFailureReason
    message: str = ""

    @property
    def already_registered(self) -> bool:
        return self.reason == AuthFailureReason.ALREADY_REGISTERED
