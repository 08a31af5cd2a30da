"""Response models for connection management."""

from pydantic import BaseModel

from faragent.application.usecase.link.response import ConnectionView


class ConnectionsResponse(BaseModel):
    """Identities linked to the caller's account."""

    account_id: str
    connection: ConnectionView | None  # None until the first link
