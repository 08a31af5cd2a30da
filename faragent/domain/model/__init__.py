"""Domain model entities for FarAgent."""

from faragent.domain.model.account import Account, AuthFailure, Session
from faragent.domain.model.link_record import LinkRecord

__all__ = [
    "Account",
    "AuthFailure",
    "LinkRecord",
    "Session",
]
