"""Repository interfaces."""

from .link_record import LinkRecordRepository

__all__ = ["LinkRecordRepository"]
