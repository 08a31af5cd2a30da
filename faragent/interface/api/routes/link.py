"""Account linking routes."""

import logging
from typing import Any
from uuid import UUID

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from faragent.application.signin_registry import SignInRegistry, SignInView
from faragent.application.usecase.connection import (
    DisconnectFarcasterUseCase,
    UnlinkWalletUseCase,
)
from faragent.application.usecase.connection.disconnect_farcaster import (
    DisconnectFarcasterRequest,
)
from faragent.application.usecase.connection.response import ConnectionsResponse
from faragent.application.usecase.connection.unlink_wallet import UnlinkWalletRequest
from faragent.application.usecase.link import (
    ConnectWalletUseCase,
    CreateChallengeUseCase,
    LinkWalletUseCase,
)
from faragent.application.usecase.link.connect_wallet import ConnectWalletRequest
from faragent.application.usecase.link.create_challenge import (
    CreateChallengeRequest,
    CreateChallengeResponse,
)
from faragent.application.usecase.link.link_wallet import LinkWalletRequest
from faragent.application.usecase.link.response import LinkResponse
from faragent.domain.error import DomainError
from faragent.domain.service import SessionService
from faragent.interface.api.dependencies import bearer_token
from faragent.interface.error import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/link", tags=["linking"], route_class=DishkaRoute)


class WalletLinkAPIRequest(BaseModel):
    """Signed wallet challenge."""

    address: str
    message: str
    signature: str


class WalletConnectAPIRequest(BaseModel):
    """Server-side wallet connect request."""

    wallet_type: str | None = None


class SignInCallbackAPIRequest(BaseModel):
    """Relay payload received by the client."""

    payload: dict[str, Any]


# ============================================================================
# WALLET
# ============================================================================


@router.post("/wallet/challenge", response_model=CreateChallengeResponse)
async def create_wallet_challenge(
    request: CreateChallengeRequest,
    create_challenge_use_case: FromDishka[CreateChallengeUseCase],
) -> CreateChallengeResponse:
    """Get the message a wallet must sign.

    The challenge is the same for an address on every device, so the
    resulting signature (and the account credentials) are reproducible.

    Example:
        POST /link/wallet/challenge
        {"address": "0x52908400098527886E0F7030069857D2E4169EE7"}

        Response:
        {
            "address": "0x52908400098527886e0f7030069857d2e4169ee7",
            "message": "faragent.xyz wants you to sign in with your Ethereum account:...",
            "chain_id": 8453
        }
    """
    try:
        return await create_challenge_use_case.execute(request)
    except DomainError as e:
        raise to_http_exception(e)


@router.post("/wallet", response_model=LinkResponse)
async def link_wallet(
    request: WalletLinkAPIRequest,
    link_wallet_use_case: FromDishka[LinkWalletUseCase],
    access_token: str | None = Depends(bearer_token),
) -> LinkResponse:
    """Sign in with a wallet, or connect it to the signed-in account.

    Without a bearer token the wallet signs in (creating or migrating the
    account as needed). With one, the wallet is merged into that account.

    Args:
        request: Address, signed challenge and signature
        link_wallet_use_case: Link wallet use case from DI
        access_token: Bearer token of the current session, if any

    Returns:
        Link response; a failed link is reported with linked=false

    Raises:
        HTTPException: 401 if the bearer token is invalid
    """
    try:
        return await link_wallet_use_case.execute(
            LinkWalletRequest(
                address=request.address,
                message=request.message,
                signature=request.signature,
                access_token=access_token,
            )
        )
    except DomainError as e:
        raise to_http_exception(e)


@router.post("/wallet/connect", response_model=LinkResponse)
async def connect_wallet(
    request: WalletConnectAPIRequest,
    connect_wallet_use_case: FromDishka[ConnectWalletUseCase],
    access_token: str | None = Depends(bearer_token),
) -> LinkResponse:
    """Connect the configured server-side wallet to the signed-in account.

    Raises:
        HTTPException: 401 without a valid bearer token
    """
    try:
        return await connect_wallet_use_case.execute(
            ConnectWalletRequest(
                wallet_type=request.wallet_type, access_token=access_token
            )
        )
    except DomainError as e:
        raise to_http_exception(e)


@router.delete("/wallet", response_model=ConnectionsResponse)
async def unlink_wallet(
    unlink_wallet_use_case: FromDishka[UnlinkWalletUseCase],
    access_token: str | None = Depends(bearer_token),
) -> ConnectionsResponse:
    """Remove the wallet from the signed-in account's connections."""
    try:
        return await unlink_wallet_use_case.execute(
            UnlinkWalletRequest(access_token=access_token)
        )
    except DomainError as e:
        raise to_http_exception(e)


# ============================================================================
# FARCASTER
# ============================================================================


@router.post(
    "/farcaster/sign-in",
    response_model=SignInView,
    status_code=status.HTTP_201_CREATED,
)
async def start_farcaster_sign_in(
    registry: FromDishka[SignInRegistry],
    session_service: FromDishka[SessionService],
    access_token: str | None = Depends(bearer_token),
) -> SignInView:
    """Start a Farcaster sign-in attempt.

    Returns the relay URL to show as a QR code or deep link. The client then
    polls GET /link/farcaster/sign-in/{attempt_id} until the state is
    succeeded or errored.

    Example:
        POST /link/farcaster/sign-in

        Response:
        {
            "attempt_id": "8d0c...",
            "state": "polling",
            "channel_url": "https://warpcast.com/~/sign-in-with-farcaster?channelToken=...",
            "result": null,
            "failure": null
        }
    """
    try:
        current_session = await session_service.current_session(access_token)
    except DomainError as e:
        raise to_http_exception(e)

    view = await registry.start(current_session)
    logger.info(f"Farcaster sign-in {view.attempt_id} started: {view.state.value}")
    return view


@router.get("/farcaster/sign-in/{attempt_id}", response_model=SignInView)
async def get_farcaster_sign_in(
    attempt_id: UUID,
    registry: FromDishka[SignInRegistry],
) -> SignInView:
    """Current state of a sign-in attempt."""
    try:
        return registry.get(attempt_id)
    except DomainError as e:
        raise to_http_exception(e)


@router.post("/farcaster/sign-in/{attempt_id}/callback", response_model=SignInView)
async def farcaster_sign_in_callback(
    attempt_id: UUID,
    request: SignInCallbackAPIRequest,
    registry: FromDishka[SignInRegistry],
) -> SignInView:
    """Deliver the relay payload the client received.

    Safe to call after the server-side poll already finished the attempt.
    """
    try:
        return await registry.deliver(attempt_id, request.payload)
    except DomainError as e:
        raise to_http_exception(e)


@router.post("/farcaster/sign-in/{attempt_id}/retry", response_model=SignInView)
async def retry_farcaster_sign_in(
    attempt_id: UUID,
    registry: FromDishka[SignInRegistry],
) -> SignInView:
    """Retry an errored attempt with a new relay channel."""
    try:
        return await registry.retry(attempt_id)
    except DomainError as e:
        raise to_http_exception(e)
    except RuntimeError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.delete(
    "/farcaster/sign-in/{attempt_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def cancel_farcaster_sign_in(
    attempt_id: UUID,
    registry: FromDishka[SignInRegistry],
) -> None:
    """Cancel an attempt (sign-in dialog closed)."""
    try:
        await registry.cancel(attempt_id)
    except DomainError as e:
        raise to_http_exception(e)


@router.delete("/farcaster", response_model=ConnectionsResponse)
async def disconnect_farcaster(
    disconnect_farcaster_use_case: FromDishka[DisconnectFarcasterUseCase],
    access_token: str | None = Depends(bearer_token),
) -> ConnectionsResponse:
    """Remove Farcaster (and its signer) from the signed-in account."""
    try:
        return await disconnect_farcaster_use_case.execute(
            DisconnectFarcasterRequest(access_token=access_token)
        )
    except DomainError as e:
        raise to_http_exception(e)
