"""Neynar API client (managed signers and user lookup)."""

import logging
from typing import Any

import httpx

from faragent.adapter.error import ProviderError
from faragent.domain.service.signer_service import (
    FarcasterProfile,
    SignerClient,
    SignerInfo,
)
from faragent.domain.value import FarcasterId


logger = logging.getLogger(__name__)


class NeynarError(ProviderError):
    """Neynar API error."""

    pass


class NeynarClient(SignerClient):
    """Base class for Neynar clients.

    Provides type distinction for dependency injection.
    """

    pass


def _profile(user: dict[str, Any]) -> FarcasterProfile:
    return FarcasterProfile(
        fid=user["fid"],
        username=user["username"],
        display_name=user.get("display_name"),
        pfp_url=user.get("pfp_url"),
        custody_address=user.get("custody_address"),
    )


def _signer(body: dict[str, Any]) -> SignerInfo:
    return SignerInfo(
        signer_uuid=body["signer_uuid"],
        public_key=body["public_key"],
        status=body["status"],
        fid=body.get("fid") or None,
        approval_url=body.get("signer_approval_url"),
    )


class RealNeynarClient(NeynarClient):
    """Neynar v2 REST client."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.neynar.com/v2",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Neynar client.

        Args:
            api_key: Neynar API key
            base_url: API base URL
            timeout: Seconds per request
            transport: Optional httpx transport (tests)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def _request(
        self, method: str, path: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.request(
                    method,
                    path,
                    params=params,
                    headers={"x-api-key": self.api_key, "accept": "application/json"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Neynar {method} {path} HTTP error: {e}")
            raise NeynarError(f"HTTP error calling Neynar: {e}") from e

        if response.status_code >= 400:
            logger.error(
                f"Neynar {method} {path} failed: {response.status_code} {response.text}"
            )
            raise NeynarError(
                f"Neynar request failed: {response.status_code}",
                status_code=response.status_code,
            )
        return response.json()

    async def create_signer(self) -> SignerInfo:
        """Create a managed signer."""
        body = await self._request("POST", "/farcaster/signer")
        logger.info(f"Created Neynar signer {body.get('signer_uuid')}")
        return _signer(body)

    async def get_signer_status(self, signer_uuid: str) -> SignerInfo:
        """Look up a managed signer."""
        body = await self._request(
            "GET", "/farcaster/signer", params={"signer_uuid": signer_uuid}
        )
        return _signer(body)

    async def lookup_user_by_fid(self, fid: FarcasterId) -> FarcasterProfile | None:
        """Fetch a user profile by fid."""
        body = await self._request(
            "GET", "/farcaster/user/bulk", params={"fids": str(fid.root)}
        )
        users = body.get("users") or []
        return _profile(users[0]) if users else None


class MockNeynarClient(NeynarClient):
    """Mock Neynar client for testing.

    Returns deterministic data without making real API calls.
    """

    def __init__(self) -> None:
        self.signers: dict[str, SignerInfo] = {}
        self.profiles: dict[int, FarcasterProfile] = {}

    async def create_signer(self) -> SignerInfo:
        signer_uuid = f"mock-signer-{len(self.signers) + 1}"
        signer = SignerInfo(
            signer_uuid=signer_uuid,
            public_key="0x" + "ab" * 32,
            status="generated",
            approval_url=f"https://client.warpcast.com/deeplinks/signed-key-request?token={signer_uuid}",
        )
        self.signers[signer_uuid] = signer
        return signer

    async def get_signer_status(self, signer_uuid: str) -> SignerInfo:
        signer = self.signers.get(signer_uuid)
        if signer is None:
            raise NeynarError("Signer not found", status_code=404)
        return signer

    async def lookup_user_by_fid(self, fid: FarcasterId) -> FarcasterProfile | None:
        return self.profiles.get(fid.root)
