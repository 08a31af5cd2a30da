"""Session routes."""

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Depends

from faragent.application.usecase.auth import SignOutUseCase
from faragent.application.usecase.auth.sign_out import SignOutRequest, SignOutResponse
from faragent.domain.error import DomainError
from faragent.interface.api.dependencies import bearer_token
from faragent.interface.error import to_http_exception

router = APIRouter(prefix="/auth", tags=["auth"], route_class=DishkaRoute)


@router.post("/logout", response_model=SignOutResponse)
async def logout(
    sign_out_use_case: FromDishka[SignOutUseCase],
    access_token: str | None = Depends(bearer_token),
) -> SignOutResponse:
    """Revoke the signed-in session.

    Args:
        sign_out_use_case: Sign out use case from DI
        access_token: Bearer token of the session to revoke

    Returns:
        Logout success message

    Raises:
        HTTPException: 401 if the bearer token is missing or invalid
    """
    try:
        return await sign_out_use_case.execute(
            SignOutRequest(access_token=access_token)
        )
    except DomainError as e:
        raise to_http_exception(e)
