"""Farcaster sign-in flow.

Drives one relay sign-in attempt through its lifecycle:

    IDLE -> CONNECTING -> AWAITING_CHANNEL -> POLLING -> SUCCEEDED | ERRORED

Polling runs in a single owned asyncio task. The relay result can also
arrive through deliver() (the client-side callback); whichever path gets
there first is processed, exactly once per attempt.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel

from faragent.adapter.farcaster.payload import Unparseable, extract_identity
from faragent.adapter.farcaster.relay import (
    RelayAuthorizationError,
    RelayClient,
    RelayError,
    RelayTransportError,
)
from faragent.config import RelaySettings
from faragent.domain.error import ChannelError, LinkingError, PayloadInvalidError
from faragent.domain.value import SignInSessionId, SocialIdentity

logger = logging.getLogger(__name__)

SuccessHandler = Callable[[SocialIdentity], Awaitable[Any]]


class SignInState(str, Enum):
    """Lifecycle state of a sign-in attempt."""

    IDLE = "idle"
    CONNECTING = "connecting"
    AWAITING_CHANNEL = "awaiting_channel"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    ERRORED = "errored"


class PollPolicy(BaseModel):
    """Timing and retry bounds for relay polling."""

    interval: float = 1.5
    request_timeout: float = 10.0
    error_backoff: float = 2.0
    max_interval: float = 10.0
    channel_timeout: float = 300.0
    max_channel_errors: int = 3
    max_channel_recreations: int = 2

    @classmethod
    def from_settings(cls, settings: RelaySettings) -> "PollPolicy":
        return cls(
            interval=settings.poll_interval,
            request_timeout=settings.request_timeout,
            error_backoff=settings.error_backoff,
            max_interval=settings.max_poll_interval,
            channel_timeout=settings.channel_timeout,
            max_channel_errors=settings.max_channel_errors,
            max_channel_recreations=settings.max_channel_recreations,
        )


class FarcasterSignIn:
    """One Farcaster sign-in attempt.

    Attributes:
        state: Current lifecycle state
        channel_url: Approval URL to show as QR code / deep link
        error: Terminal error once ERRORED
        result: Return value of the success handler once SUCCEEDED
    """

    def __init__(
        self,
        relay: RelayClient,
        policy: PollPolicy,
        on_success: SuccessHandler,
        siwe_uri: str,
        domain: str,
    ) -> None:
        self.relay = relay
        self.policy = policy
        self.on_success = on_success
        self.siwe_uri = siwe_uri
        self.domain = domain

        self.state = SignInState.IDLE
        self.session_id: SignInSessionId | None = None
        self.channel_url: str | None = None
        self.error: LinkingError | None = None
        self.result: Any = None
        self.channel_recreations = 0

        self._channel_token: str | None = None
        self._task: asyncio.Task | None = None
        self._processed: set[SignInSessionId] = set()

    @property
    def is_active(self) -> bool:
        return self.state in (
            SignInState.CONNECTING,
            SignInState.AWAITING_CHANNEL,
            SignInState.POLLING,
        )

    async def start(self) -> SignInState:
        """Open a channel and begin polling.

        Returns:
            State after the channel was requested (POLLING, or ERRORED if the
            relay refused)
        """
        if self.state != SignInState.IDLE:
            raise RuntimeError(f"Cannot start sign-in from state {self.state.value}")

        session_id = SignInSessionId(uuid4())
        self.session_id = session_id
        self.channel_recreations = 0

        if not await self._open_channel():
            return self.state

        self.state = SignInState.POLLING
        self._task = asyncio.create_task(self._poll(session_id))
        return self.state

    async def retry(self) -> SignInState:
        """Manual retry after a terminal error."""
        if self.state != SignInState.ERRORED:
            raise RuntimeError(f"Cannot retry sign-in from state {self.state.value}")
        await self.cancel()
        return await self.start()

    async def cancel(self) -> None:
        """Stop polling and return to IDLE (dialog closed).

        A session established before cancellation is not rolled back.
        """
        await self._stop_polling()
        self.state = SignInState.IDLE
        self.session_id = None
        self.channel_url = None
        self._channel_token = None
        self.error = None
        self.result = None

    async def deliver(self, payload: dict[str, Any]) -> bool:
        """Hand in a completed payload from the client-side callback.

        Returns:
            True if this call processed the result, False if it was already
            processed or no attempt is running
        """
        if self.session_id is None:
            return False
        return await self._complete(self.session_id, payload, from_callback=True)

    async def wait(self) -> SignInState:
        """Wait for the polling task to finish."""
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        return self.state

    async def _open_channel(self) -> bool:
        self.state = SignInState.CONNECTING
        try:
            channel = await asyncio.wait_for(
                self.relay.create_channel(self.siwe_uri, self.domain),
                self.policy.request_timeout,
            )
        except (RelayError, asyncio.TimeoutError) as e:
            logger.warning(f"Could not open relay channel: {e}")
            self._fail(ChannelError(f"Could not open a Farcaster sign-in channel: {e}"))
            return False

        self._channel_token = channel.channel_token
        self.channel_url = channel.url
        self.state = SignInState.AWAITING_CHANNEL
        return True

    async def _poll(self, session_id: SignInSessionId) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.policy.channel_timeout
        interval = self.policy.interval
        auth_errors = 0
        reconnected = False

        try:
            while self.session_id == session_id and self.state == SignInState.POLLING:
                if loop.time() >= deadline:
                    self._fail(ChannelError("Farcaster sign-in request expired"))
                    return

                await asyncio.sleep(interval)

                try:
                    status = await asyncio.wait_for(
                        self.relay.channel_status(self._channel_token or ""),
                        self.policy.request_timeout,
                    )
                except RelayAuthorizationError:
                    auth_errors += 1
                    logger.info(f"Relay channel unauthorized ({auth_errors} in a row)")
                    if auth_errors < self.policy.max_channel_errors:
                        continue

                    if self.channel_recreations >= self.policy.max_channel_recreations:
                        self._fail(
                            ChannelError("Farcaster sign-in channel kept expiring")
                        )
                        return

                    # Expired channels are expected; replace silently
                    self.channel_recreations += 1
                    auth_errors = 0
                    logger.info(
                        f"Recreating relay channel ({self.channel_recreations})"
                    )
                    if not await self._open_channel():
                        return
                    self.state = SignInState.POLLING
                    deadline = loop.time() + self.policy.channel_timeout
                    continue
                except (RelayTransportError, asyncio.TimeoutError) as e:
                    if reconnected:
                        self._fail(ChannelError(f"Lost connection to the relay: {e}"))
                        return
                    reconnected = True
                    logger.info(f"Relay poll failed, reconnecting once: {e}")
                    await self.relay.reconnect()
                    interval = min(
                        interval * self.policy.error_backoff, self.policy.max_interval
                    )
                    continue
                except RelayError as e:
                    self._fail(ChannelError(f"Relay error: {e}"))
                    return

                auth_errors = 0
                reconnected = False
                interval = self.policy.interval

                if status.completed:
                    await self._complete(session_id, status.payload, from_callback=False)
                    return
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Farcaster sign-in failed unexpectedly: {e}", exc_info=True)
            self._fail(LinkingError("Farcaster sign-in failed unexpectedly"))

    async def _complete(
        self, session_id: SignInSessionId, payload: dict[str, Any], from_callback: bool
    ) -> bool:
        # Guard is set before any await so the poll and callback paths cannot both pass
        if session_id != self.session_id or session_id in self._processed:
            return False
        self._processed.add(session_id)

        if from_callback:
            await self._stop_polling()

        extracted = extract_identity(payload)
        if isinstance(extracted, Unparseable):
            logger.warning(
                f"Unparseable sign-in payload ({extracted.reason}): shape={extracted.shape}"
            )
            self._fail(PayloadInvalidError("Farcaster authentication failed"))
            return True

        logger.info(
            f"Farcaster sign-in completed for fid {extracted.identity.fid} "
            f"via {extracted.strategy.value} payload"
        )
        try:
            self.result = await self.on_success(extracted.identity)
        except LinkingError as e:
            self._fail(e)
            return True
        except Exception as e:
            logger.error(f"Sign-in success handler failed: {e}", exc_info=True)
            self._fail(LinkingError("Farcaster sign-in failed unexpectedly"))
            return True

        if self.session_id == session_id:
            self.state = SignInState.SUCCEEDED
        return True

    async def _stop_polling(self) -> None:
        task = self._task
        self._task = None
        if task is None or task is asyncio.current_task() or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _fail(self, error: LinkingError) -> None:
        logger.warning(f"Farcaster sign-in errored: {error.code}: {error}")
        self.error = error
        self.state = SignInState.ERRORED
