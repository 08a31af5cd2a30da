"""In-memory repository implementations for testing."""

from .link_record import InMemoryLinkRecordRepository

__all__ = ["InMemoryLinkRecordRepository"]
