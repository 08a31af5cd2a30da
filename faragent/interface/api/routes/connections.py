"""Connection routes."""

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Depends

from faragent.adapter.error import ProviderError
from faragent.application.usecase.connection import (
    GetConnectionsUseCase,
    ProvisionSignerUseCase,
)
from faragent.application.usecase.connection.get_connections import (
    GetConnectionsRequest,
)
from faragent.application.usecase.connection.provision_signer import (
    ProvisionSignerRequest,
    ProvisionSignerResponse,
)
from faragent.application.usecase.connection.response import ConnectionsResponse
from faragent.domain.error import DomainError
from faragent.interface.api.dependencies import bearer_token
from faragent.interface.error import to_http_exception

router = APIRouter(
    prefix="/connections", tags=["connections"], route_class=DishkaRoute
)


@router.get("", response_model=ConnectionsResponse)
async def get_connections(
    get_connections_use_case: FromDishka[GetConnectionsUseCase],
    access_token: str | None = Depends(bearer_token),
) -> ConnectionsResponse:
    """Linked wallet and Farcaster account of the signed-in user.

    Example:
        GET /connections
        Authorization: Bearer <access token>

        Response:
        {
            "account_id": "123e4567-e89b-12d3-a456-426614174000",
            "connection": {
                "wallet_address": "0x5290...9ee7",
                "farcaster_fid": 1234,
                "farcaster_username": "alice",
                ...
            }
        }
    """
    try:
        return await get_connections_use_case.execute(
            GetConnectionsRequest(access_token=access_token)
        )
    except DomainError as e:
        raise to_http_exception(e)


@router.post("/signer", response_model=ProvisionSignerResponse)
async def provision_signer(
    provision_signer_use_case: FromDishka[ProvisionSignerUseCase],
    access_token: str | None = Depends(bearer_token),
) -> ProvisionSignerResponse:
    """Create (or reuse) a managed signer for the linked Farcaster account.

    The response carries the approval URL the user opens in their
    Farcaster client.
    """
    try:
        return await provision_signer_use_case.execute(
            ProvisionSignerRequest(access_token=access_token)
        )
    except (DomainError, ProviderError) as e:
        raise to_http_exception(e)
