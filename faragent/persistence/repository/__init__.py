"""PostgreSQL repository implementations."""

from faragent.persistence.repository.link_record import PostgresLinkRecordRepository

__all__ = ["PostgresLinkRecordRepository"]
