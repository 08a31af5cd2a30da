"""Farcaster Connect relay client.

The relay brokers the out-of-band sign-in: the app opens a channel, shows
its URL as a QR code or deep link, and polls the channel until the user
approves in their Farcaster client.

    POST /v1/channel          -> 201 {channelToken, url, nonce}
    GET  /v1/channel/status   -> 202 {state: "pending"} | 200 {state: "completed", ...}
                                 401 once the channel token has expired
"""

import logging
from collections import deque
from typing import Any

import httpx
from pydantic import BaseModel

from faragent.adapter.error import ProviderError

logger = logging.getLogger(__name__)


class RelayError(ProviderError):
    """Relay request failed."""

    pass


class RelayAuthorizationError(RelayError):
    """Channel token was rejected (expired or unknown channel)."""

    pass


class RelayTransportError(RelayError):
    """Connection to the relay failed."""

    pass


class Channel(BaseModel):
    """Open relay channel."""

    channel_token: str
    url: str
    nonce: str


class ChannelStatus(BaseModel):
    """Channel poll result."""

    state: str
    payload: dict[str, Any] = {}

    @property
    def completed(self) -> bool:
        return self.state == "completed"


class RelayClient:
    """Relay client interface."""

    async def create_channel(self, siwe_uri: str, domain: str) -> Channel:
        """Open a new sign-in channel.

        Args:
            siwe_uri: URI named in the sign-in message
            domain: Domain named in the sign-in message

        Returns:
            Channel with token, approval URL and nonce
        """
        raise NotImplementedError

    async def channel_status(self, channel_token: str) -> ChannelStatus:
        """Poll a channel.

        Raises:
            RelayAuthorizationError: If the channel token is rejected
            RelayTransportError: If the relay cannot be reached
        """
        raise NotImplementedError

    async def reconnect(self) -> None:
        """Drop and re-establish the underlying connection."""
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release the underlying connection."""
        pass


class HttpRelayClient(RelayClient):
    """Relay client over HTTPS."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize relay client.

        Args:
            base_url: Relay URL, e.g. https://relay.farcaster.xyz
            timeout: Seconds per request
            transport: Optional httpx transport (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self._client: httpx.AsyncClient | None = None
        self.connections_opened = 0

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            )
            self.connections_opened += 1
        return self._client

    async def create_channel(self, siwe_uri: str, domain: str) -> Channel:
        """Open a new sign-in channel."""
        try:
            response = await self._get_client().post(
                "/v1/channel", json={"siweUri": siwe_uri, "domain": domain}
            )
        except httpx.HTTPError as e:
            logger.warning(f"Relay channel creation failed: {e}")
            raise RelayTransportError(f"Relay unreachable: {e}") from e

        if response.status_code not in (200, 201):
            logger.error(
                f"Relay channel creation returned {response.status_code}: {response.text}"
            )
            raise RelayError(
                f"Channel creation failed: {response.status_code}",
                status_code=response.status_code,
            )

        body = response.json()
        logger.info("Relay channel opened")
        return Channel(
            channel_token=body["channelToken"], url=body["url"], nonce=body["nonce"]
        )

    async def channel_status(self, channel_token: str) -> ChannelStatus:
        """Poll a channel."""
        try:
            response = await self._get_client().get(
                "/v1/channel/status",
                headers={"Authorization": f"Bearer {channel_token}"},
            )
        except httpx.HTTPError as e:
            logger.warning(f"Relay poll failed: {e}")
            raise RelayTransportError(f"Relay unreachable: {e}") from e

        if response.status_code == 401:
            raise RelayAuthorizationError(
                "Channel token rejected", status_code=response.status_code
            )
        if response.status_code not in (200, 202):
            raise RelayError(
                f"Channel poll failed: {response.status_code}",
                status_code=response.status_code,
            )

        body = response.json()
        return ChannelStatus(state=body.get("state", "pending"), payload=body)

    async def reconnect(self) -> None:
        """Close the pooled connection; the next request opens a new one."""
        logger.info("Reconnecting to relay")
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class MockRelayClient(RelayClient):
    """Scripted relay client for testing.

    Each poll consumes the next scripted step: a payload dict completes the
    channel, an exception instance is raised, anything else is 'pending'.
    An empty script polls as pending forever.
    """

    def __init__(self, script: list[Any] | None = None) -> None:
        self.script: deque[Any] = deque(script or [])
        self.channels_created = 0
        self.reconnects = 0
        self.polls = 0
        self.create_error: Exception | None = None

    def enqueue(self, *steps: Any) -> None:
        self.script.extend(steps)

    async def create_channel(self, siwe_uri: str, domain: str) -> Channel:
        if self.create_error is not None:
            raise self.create_error
        self.channels_created += 1
        return Channel(
            channel_token=f"mock-channel-{self.channels_created}",
            url=f"https://warpcast.com/~/sign-in-with-farcaster?channelToken=mock-channel-{self.channels_created}",
            nonce=f"mock-nonce-{self.channels_created}",
        )

    async def channel_status(self, channel_token: str) -> ChannelStatus:
        self.polls += 1
        if not self.script:
            return ChannelStatus(state="pending")
        step = self.script.popleft()
        if isinstance(step, Exception):
            raise step
        if isinstance(step, dict):
            return ChannelStatus(state="completed", payload=step)
        return ChannelStatus(state="pending")

    async def reconnect(self) -> None:
        self.reconnects += 1
