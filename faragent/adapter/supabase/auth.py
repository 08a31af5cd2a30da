"""Supabase Auth (GoTrue) session store.

Accounts are email/password users whose email is the synthetic identity
key and whose password is the derived secret.
"""

import logging
import secrets
from typing import Any
from uuid import UUID, uuid4

import httpx
from pydantic import SecretStr

from faragent.domain.error import NotFoundError, StoreUnavailableError
from faragent.domain.model.account import Account, AuthFailure, Session
from faragent.domain.service.session_service import SessionStore
from faragent.domain.value import AccountId, AuthFailureReason, CredentialPair
from faragent.util.error import ConfigurationError

logger = logging.getLogger(__name__)

ALREADY_REGISTERED_CODES = {"user_already_exists", "email_exists"}


class SupabaseSessionStore(SessionStore):
    """Base class for Supabase session stores.

    Provides type distinction for dependency injection.
    """

    pass


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if not isinstance(body, dict):
        return response.text
    return str(
        body.get("msg")
        or body.get("error_description")
        or body.get("message")
        or body.get("error")
        or response.text
    )


def _error_code(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("error_code") or body.get("code")
    return None


class GoTrueSessionStore(SupabaseSessionStore):
    """Session store backed by the Supabase Auth REST API."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        service_role_key: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize GoTrue session store.

        Args:
            base_url: Supabase project URL, e.g. https://<ref>.supabase.co
            anon_key: Public API key
            service_role_key: Admin API key (needed for admin operations only)
            timeout: Seconds per request
            transport: Optional httpx transport (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.service_role_key = service_role_key
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self.base_url}/auth/v1",
            timeout=self.timeout,
            transport=self.transport,
        )

    def _headers(self, bearer: str | None = None) -> dict[str, str]:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {bearer or self.anon_key}",
            "Content-Type": "application/json",
        }

    def _admin_headers(self) -> dict[str, str]:
        if not self.service_role_key:
            raise ConfigurationError(
                "SESSION_STORE__SERVICE_ROLE_KEY is required for admin operations"
            )
        return {
            "apikey": self.service_role_key,
            "Authorization": f"Bearer {self.service_role_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.request(
                    method, path, headers=headers, json=json, params=params
                )
        except httpx.HTTPError as e:
            logger.warning(f"Session store request {method} {path} failed: {e}")
            raise StoreUnavailableError(f"Session store unreachable: {e}") from e

        if response.status_code >= 500 or response.status_code == 429:
            logger.warning(
                f"Session store {method} {path} returned {response.status_code}"
            )
            raise StoreUnavailableError(
                f"Session store returned {response.status_code}"
            )
        return response

    @staticmethod
    def _session_from(body: dict[str, Any], identity_key: str) -> Session:
        return Session(
            account_id=AccountId(UUID(body["user"]["id"])),
            identity_key=body["user"].get("email") or identity_key,
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token"),
        )

    async def sign_in(self, pair: CredentialPair) -> Session | AuthFailure:
        """Sign in with email/password grant."""
        response = await self._request(
            "POST",
            "/token",
            headers=self._headers(),
            params={"grant_type": "password"},
            json={
                "email": pair.identity_key,
                "password": pair.secret.get_secret_value(),
            },
        )

        if response.status_code == 200:
            return self._session_from(response.json(), pair.identity_key)

        message = _error_message(response)
        logger.info(f"Sign-in rejected for {pair.identity_key}: {message}")
        if response.status_code in (400, 401):
            return AuthFailure(
                reason=AuthFailureReason.INVALID_CREDENTIALS, message=message
            )
        return AuthFailure(reason=AuthFailureReason.OTHER, message=message)

    async def sign_up(self, pair: CredentialPair) -> Session | AuthFailure:
        """Create an email/password user."""
        response = await self._request(
            "POST",
            "/signup",
            headers=self._headers(),
            json={
                "email": pair.identity_key,
                "password": pair.secret.get_secret_value(),
            },
        )

        if response.status_code == 200:
            body = response.json()
            if "access_token" not in body:
                # Project requires email confirmation; synthetic emails never confirm
                return AuthFailure(
                    reason=AuthFailureReason.OTHER,
                    message="Sign-up did not return a session",
                )
            return self._session_from(body, pair.identity_key)

        message = _error_message(response)
        if (
            _error_code(response) in ALREADY_REGISTERED_CODES
            or "already registered" in message.lower()
        ):
            logger.info(f"Identity key already registered: {pair.identity_key}")
            return AuthFailure(
                reason=AuthFailureReason.ALREADY_REGISTERED, message=message
            )

        logger.warning(f"Sign-up failed for {pair.identity_key}: {message}")
        return AuthFailure(reason=AuthFailureReason.OTHER, message=message)

    async def get_current_account(self, access_token: str) -> Account | None:
        """Resolve the user behind an access token."""
        response = await self._request(
            "GET", "/user", headers=self._headers(bearer=access_token)
        )
        if response.status_code != 200:
            return None
        body = response.json()
        return Account(id=AccountId(UUID(body["id"])), identity_key=body.get("email", ""))

    async def update_secret(self, session: Session, secret: SecretStr) -> None:
        """Change the password of the session's own user."""
        response = await self._request(
            "PUT",
            "/user",
            headers=self._headers(bearer=session.access_token),
            json={"password": secret.get_secret_value()},
        )
        if response.status_code != 200:
            message = _error_message(response)
            logger.warning(f"Password update failed: {message}")
            raise StoreUnavailableError(f"Password update failed: {message}")

    async def admin_update_secret(
        self, account_id: AccountId, secret: SecretStr
    ) -> None:
        """Change any user's password through the admin API."""
        response = await self._request(
            "PUT",
            f"/admin/users/{account_id}",
            headers=self._admin_headers(),
            json={"password": secret.get_secret_value()},
        )
        if response.status_code != 200:
            message = _error_message(response)
            logger.error(f"Admin password update failed for {account_id}: {message}")
            raise StoreUnavailableError(f"Admin password update failed: {message}")

    async def find_account(self, identity_key: str, per_page: int = 1000) -> Account | None:
        """Find a user by email through the admin API (paged listing)."""
        headers = self._admin_headers()
        page = 1
        while True:
            response = await self._request(
                "GET",
                "/admin/users",
                headers=headers,
                params={"page": page, "per_page": per_page},
            )
            if response.status_code != 200:
                message = _error_message(response)
                raise StoreUnavailableError(f"Listing users failed: {message}")

            users = response.json().get("users", [])
            for user in users:
                if (user.get("email") or "").lower() == identity_key.lower():
                    return Account(
                        id=AccountId(UUID(user["id"])), identity_key=user["email"]
                    )
            if len(users) < per_page:
                return None
            page += 1

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session's refresh tokens."""
        response = await self._request(
            "POST", "/logout", headers=self._headers(bearer=access_token)
        )
        if response.status_code not in (200, 204, 401):
            logger.warning(f"Sign-out returned {response.status_code}")


class InMemorySessionStore(SupabaseSessionStore):
    """In-memory session store for testing.

    Set fail_next to make the next calls raise StoreUnavailableError.
    """

    def __init__(self) -> None:
        self._accounts: dict[str, tuple[AccountId, str]] = {}
        self._tokens: dict[str, AccountId] = {}
        self.fail_next = 0
        self.sign_up_calls = 0
        self.sign_in_calls = 0

    def _maybe_fail(self) -> None:
        if self.fail_next > 0:
            self.fail_next -= 1
            raise StoreUnavailableError("Simulated session store outage")

    def register(self, identity_key: str, secret: str) -> Account:
        """Seed an account directly (bypasses sign-up)."""
        account_id = AccountId(uuid4())
        self._accounts[identity_key] = (account_id, secret)
        return Account(id=account_id, identity_key=identity_key)

    def secret_of(self, identity_key: str) -> str | None:
        entry = self._accounts.get(identity_key)
        return entry[1] if entry else None

    @property
    def account_count(self) -> int:
        return len(self._accounts)

    def _issue(self, account_id: AccountId, identity_key: str) -> Session:
        token = secrets.token_urlsafe(16)
        self._tokens[token] = account_id
        return Session(
            account_id=account_id,
            identity_key=identity_key,
            access_token=token,
            refresh_token=secrets.token_urlsafe(16),
        )

    async def sign_in(self, pair: CredentialPair) -> Session | AuthFailure:
        self._maybe_fail()
        self.sign_in_calls += 1
        entry = self._accounts.get(pair.identity_key)
        if entry is None or entry[1] != pair.secret.get_secret_value():
            return AuthFailure(
                reason=AuthFailureReason.INVALID_CREDENTIALS,
                message="Invalid login credentials",
            )
        return self._issue(entry[0], pair.identity_key)

    async def sign_up(self, pair: CredentialPair) -> Session | AuthFailure:
        self._maybe_fail()
        self.sign_up_calls += 1
        if pair.identity_key in self._accounts:
            return AuthFailure(
                reason=AuthFailureReason.ALREADY_REGISTERED,
                message="User already registered",
            )
        account = self.register(pair.identity_key, pair.secret.get_secret_value())
        return self._issue(account.id, pair.identity_key)

    async def get_current_account(self, access_token: str) -> Account | None:
        self._maybe_fail()
        account_id = self._tokens.get(access_token)
        if account_id is None:
            return None
        for identity_key, (stored_id, _) in self._accounts.items():
            if stored_id == account_id:
                return Account(id=account_id, identity_key=identity_key)
        return None

    async def update_secret(self, session: Session, secret: SecretStr) -> None:
        self._maybe_fail()
        if session.access_token not in self._tokens:
            raise StoreUnavailableError("Session is not valid")
        await self.admin_update_secret(session.account_id, secret)

    async def admin_update_secret(
        self, account_id: AccountId, secret: SecretStr
    ) -> None:
        self._maybe_fail()
        for identity_key, (stored_id, _) in self._accounts.items():
            if stored_id == account_id:
                self._accounts[identity_key] = (stored_id, secret.get_secret_value())
                return
        raise NotFoundError("Account", str(account_id))

    async def find_account(self, identity_key: str) -> Account | None:
        self._maybe_fail()
        entry = self._accounts.get(identity_key)
        if entry is None:
            return None
        return Account(id=entry[0], identity_key=identity_key)

    async def sign_out(self, access_token: str) -> None:
        self._tokens.pop(access_token, None)
