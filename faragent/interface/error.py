"""Interface layer errors."""

from fastapi import HTTPException, status

from faragent.adapter.error import ProviderError
from faragent.domain.error import (
    DomainError,
    LinkingError,
    NotAuthenticatedError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)


class InterfaceError(Exception):
    """Base interface error."""

    pass


class InvalidAuthorizationError(InterfaceError):
    """Authorization header present but not a bearer token."""

    pass


def to_http_exception(error: Exception) -> HTTPException:
    """Translate a domain or adapter error into an HTTP error.

    Args:
        error: Error raised by a use case

    Returns:
        HTTPException with a matching status code
    """
    if isinstance(error, (NotAuthenticatedError, InvalidAuthorizationError)):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(error),
            headers={"WWW-Authenticate": "Bearer"},
        )
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, StoreUnavailableError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=error.message
        )
    if isinstance(error, LinkingError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"code": error.code, "message": error.message, "remedy": error.remedy},
        )
    if isinstance(error, ProviderError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Upstream service failed: {error}",
        )
    if isinstance(error, DomainError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )
