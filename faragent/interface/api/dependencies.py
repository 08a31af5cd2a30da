"""Request dependencies shared by routes."""

from fastapi import Header

from faragent.interface.error import InvalidAuthorizationError, to_http_exception


def bearer_token(authorization: str | None = Header(default=None)) -> str | None:
    """Access token from an 'Authorization: Bearer <token>' header, if any.

    Raises:
        HTTPException: 401 if the header is present but malformed
    """
    if authorization is None:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise to_http_exception(
            InvalidAuthorizationError("Authorization header must be 'Bearer <token>'")
        )
    return token.strip()
