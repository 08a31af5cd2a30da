"""Registry of running Farcaster sign-in attempts.

Sign-in attempts outlive the request that starts them: the relay is polled
in the background while the client shows the QR code and checks back. The
registry owns every attempt and links the identity in a fresh request scope
once the relay reports completion.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

import logfire
from dishka import AsyncContainer
from pydantic import BaseModel

from faragent.adapter.farcaster.relay import RelayClient
from faragent.adapter.farcaster.signin import FarcasterSignIn, PollPolicy, SignInState
from faragent.application.usecase.link import LinkFarcasterUseCase
from faragent.application.usecase.link.link_farcaster import LinkFarcasterRequest
from faragent.application.usecase.link.response import LinkFailure, LinkResponse
from faragent.config import RelaySettings
from faragent.domain.error import NotFoundError
from faragent.domain.model.account import Session
from faragent.domain.value import SocialIdentity


class SignInView(BaseModel):
    """Client-facing snapshot of a sign-in attempt."""

    attempt_id: str
    state: SignInState
    channel_url: str | None = None
    result: LinkResponse | None = None
    failure: LinkFailure | None = None


class _Attempt:
    def __init__(self, flow: FarcasterSignIn, current_session: Session | None) -> None:
        self.flow = flow
        self.current_session = current_session
        self.created_at = datetime.now(timezone.utc)


class SignInRegistry:
    """App-scoped owner of Farcaster sign-in attempts."""

    def __init__(
        self,
        container: AsyncContainer,
        relay: RelayClient,
        policy: PollPolicy,
        relay_settings: RelaySettings,
    ) -> None:
        """Initialize registry.

        Args:
            container: DI container used to open a request scope per link
            relay: Shared relay client
            policy: Polling policy for new attempts
            relay_settings: Relay settings (sign-in domain and URI)
        """
        self.container = container
        self.relay = relay
        self.policy = policy
        self.relay_settings = relay_settings
        self._attempts: dict[UUID, _Attempt] = {}

    def __len__(self) -> int:
        return len(self._attempts)

    async def start(self, current_session: Session | None = None) -> SignInView:
        """Open a relay channel and start polling.

        Args:
            current_session: Session of the signed-in user; the Farcaster
                account is merged into it on success

        Returns:
            View with the channel URL to display
        """
        self._prune()

        attempt_id = uuid4()
        flow = FarcasterSignIn(
            relay=self.relay,
            policy=self.policy,
            on_success=self._success_handler(current_session),
            siwe_uri=self.relay_settings.siwe_uri,
            domain=self.relay_settings.siwe_domain,
        )
        self._attempts[attempt_id] = _Attempt(flow, current_session)

        with logfire.span("signin_registry.start", attempt_id=str(attempt_id)):
            await flow.start()

        return self._view(attempt_id, flow)

    def get(self, attempt_id: UUID) -> SignInView:
        """Current view of an attempt.

        Raises:
            NotFoundError: If the attempt is unknown or was cancelled
        """
        return self._view(attempt_id, self._get(attempt_id).flow)

    async def deliver(self, attempt_id: UUID, payload: dict[str, Any]) -> SignInView:
        """Hand in the payload the client received from the relay.

        Delivering after the poll already processed the result is a no-op.
        """
        flow = self._get(attempt_id).flow
        processed = await flow.deliver(payload)
        logfire.info(
            "Sign-in payload delivered",
            attempt_id=str(attempt_id),
            processed=processed,
        )
        return self._view(attempt_id, flow)

    async def retry(self, attempt_id: UUID) -> SignInView:
        """Restart an errored attempt with a new channel.

        Raises:
            NotFoundError: If the attempt is unknown
            RuntimeError: If the attempt has not errored
        """
        flow = self._get(attempt_id).flow
        await flow.retry()
        return self._view(attempt_id, flow)

    async def cancel(self, attempt_id: UUID) -> None:
        """Stop and forget an attempt (dialog closed)."""
        attempt = self._attempts.pop(attempt_id, None)
        if attempt is None:
            raise NotFoundError("Sign-in attempt", str(attempt_id))
        await attempt.flow.cancel()

    async def close(self) -> None:
        """Cancel every attempt; called when the container shuts down."""
        attempts = list(self._attempts.values())
        self._attempts.clear()
        await asyncio.gather(*(attempt.flow.cancel() for attempt in attempts))

    def _get(self, attempt_id: UUID) -> _Attempt:
        attempt = self._attempts.get(attempt_id)
        if attempt is None:
            raise NotFoundError("Sign-in attempt", str(attempt_id))
        return attempt

    def _success_handler(self, current_session: Session | None):
        async def link(identity: SocialIdentity) -> LinkResponse:
            async with self.container() as request_container:
                use_case = await request_container.get(LinkFarcasterUseCase)
                response = await use_case.execute(
                    LinkFarcasterRequest(
                        identity=identity, current_session=current_session
                    )
                )
            if response.failure is not None:
                raise response.failure.to_error()
            return response

        return link

    def _prune(self) -> None:
        """Forget finished attempts older than the channel timeout."""
        now = datetime.now(timezone.utc)
        expired = [
            attempt_id
            for attempt_id, attempt in self._attempts.items()
            if not attempt.flow.is_active
            and (now - attempt.created_at).total_seconds() > self.policy.channel_timeout
        ]
        for attempt_id in expired:
            del self._attempts[attempt_id]

    @staticmethod
    def _view(attempt_id: UUID, flow: FarcasterSignIn) -> SignInView:
        return SignInView(
            attempt_id=str(attempt_id),
            state=flow.state,
            channel_url=flow.channel_url,
            result=flow.result if isinstance(flow.result, LinkResponse) else None,
            failure=LinkFailure.from_error(flow.error) if flow.error else None,
        )
