"""Session domain service."""

from collections.abc import Awaitable, Callable
from typing import TypeVar

import logfire
from pydantic import SecretStr

from faragent.domain.error import NotAuthenticatedError
from faragent.domain.model.account import Account, AuthFailure, Session
from faragent.domain.value import AccountId, CredentialPair

from .base import Service, with_store_retry

T = TypeVar("T")


class SessionStore:
    """Hosted auth service interface.

    Implementations raise StoreUnavailableError for transient failures and
    return AuthFailure for rejected credentials.
    """

    async def sign_in(self, pair: CredentialPair) -> Session | AuthFailure:
        """Sign in with a credential pair.

        Args:
            pair: Identity key and secret

        Returns:
            Session on success, AuthFailure if the credentials are rejected
        """
        raise NotImplementedError

    async def sign_up(self, pair: CredentialPair) -> Session | AuthFailure:
        """Create an account for a credential pair and sign it in.

        Returns:
            Session on success, AuthFailure with ALREADY_REGISTERED if the
            identity key is taken
        """
        raise NotImplementedError

    async def get_current_account(self, access_token: str) -> Account | None:
        """Resolve the account behind an access token, None if invalid."""
        raise NotImplementedError

    async def update_secret(self, session: Session, secret: SecretStr) -> None:
        """Replace the secret of the session's own account."""
        raise NotImplementedError

    async def admin_update_secret(
        self, account_id: AccountId, secret: SecretStr
    ) -> None:
        """Replace any account's secret (admin operation)."""
        raise NotImplementedError

    async def find_account(self, identity_key: str) -> Account | None:
        """Find an account by identity key (admin operation)."""
        raise NotImplementedError

    async def sign_out(self, access_token: str) -> None:
        """Revoke a session."""
        raise NotImplementedError


class SessionService(Service):
    """Domain service for Session Store operations.

    Retries transient store failures a bounded number of times before
    surfacing StoreUnavailableError.
    """

    def __init__(
        self,
        session_store: SessionStore,
        retry_attempts: int = 2,
        retry_delay: float = 0.5,
    ) -> None:
        """Initialize session service.

        Args:
            session_store: Hosted auth service
            retry_attempts: Retries after the first failed call
            retry_delay: Seconds between attempts, doubled each retry
        """
        self.session_store = session_store
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay

    async def sign_in(self, pair: CredentialPair) -> Session | AuthFailure:
        """Sign in with a credential pair."""
        with logfire.span(
            "session_service.sign_in",
            identity_key=pair.identity_key,
            variant=pair.variant.value,
        ):
            result = await self._with_retry(
                "sign_in", lambda: self.session_store.sign_in(pair)
            )
            if isinstance(result, AuthFailure):
                logfire.info(
                    "Sign-in rejected",
                    identity_key=pair.identity_key,
                    variant=pair.variant.value,
                    reason=result.reason.value,
                )
            return result

    async def sign_up(self, pair: CredentialPair) -> Session | AuthFailure:
        """Create an account for a credential pair."""
        with logfire.span(
            "session_service.sign_up",
            identity_key=pair.identity_key,
            variant=pair.variant.value,
        ):
            result = await self._with_retry(
                "sign_up", lambda: self.session_store.sign_up(pair)
            )
            if isinstance(result, Session):
                logfire.info(
                    "Account created",
                    account_id=str(result.account_id),
                    identity_key=pair.identity_key,
                )
            return result

    async def get_current_account(self, access_token: str) -> Account | None:
        """Resolve the account of a session token."""
        return await self._with_retry(
            "get_current_account",
            lambda: self.session_store.get_current_account(access_token),
        )

    async def require_account(self, access_token: str | None) -> Account:
        """Resolve the account of a session token.

        Raises:
            NotAuthenticatedError: If there is no token or it is not valid
        """
        if not access_token:
            raise NotAuthenticatedError()
        account = await self.get_current_account(access_token)
        if account is None:
            raise NotAuthenticatedError("Session is invalid or expired")
        return account

    async def current_session(self, access_token: str | None) -> Session | None:
        """Session of the caller, or None when no token was sent.

        Raises:
            NotAuthenticatedError: If a token was sent but is not valid
        """
        if not access_token:
            return None
        account = await self.require_account(access_token)
        return Session(
            account_id=account.id,
            identity_key=account.identity_key,
            access_token=access_token,
        )

    async def update_secret(self, session: Session, secret: SecretStr) -> None:
        """Rewrite the secret of the session's account."""
        with logfire.span(
            "session_service.update_secret", account_id=str(session.account_id)
        ):
            await self._with_retry(
                "update_secret",
                lambda: self.session_store.update_secret(session, secret),
            )
            logfire.info("Account secret updated", account_id=str(session.account_id))

    async def admin_update_secret(
        self, account_id: AccountId, secret: SecretStr
    ) -> None:
        """Rewrite any account's secret with admin rights."""
        with logfire.span(
            "session_service.admin_update_secret", account_id=str(account_id)
        ):
            await self._with_retry(
                "admin_update_secret",
                lambda: self.session_store.admin_update_secret(account_id, secret),
            )
            logfire.info("Account secret reset", account_id=str(account_id))

    async def find_account(self, identity_key: str) -> Account | None:
        """Find an account by identity key."""
        return await self._with_retry(
            "find_account", lambda: self.session_store.find_account(identity_key)
        )

    async def sign_out(self, access_token: str) -> None:
        """Revoke a session."""
        await self._with_retry(
            "sign_out", lambda: self.session_store.sign_out(access_token)
        )

    async def _with_retry(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        return await with_store_retry(
            "session_store", operation, call, self.retry_attempts, self.retry_delay
        )
