"""SQLAlchemy table definitions for FarAgent.

These Core tables are the schema the repositories read and write.
migrations/ creates them (scripts/run_migrations.py).
"""

from sqlalchemy import BigInteger, Column, Index, MetaData, String, Table, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

metadata = MetaData()

# ============================================================================
# USER CONNECTIONS TABLE (one row per Session Store account)
# ============================================================================
user_connections_table = Table(
    "user_connections",
    metadata,
    Column("id", UUID, primary_key=True, server_default="gen_random_uuid()"),
    Column("user_id", UUID, nullable=False, unique=True),  # auth.users.id
    Column("wallet_address", String(42), nullable=True),  # lower-cased 0x + 40 hex
    Column("farcaster_fid", BigInteger, nullable=True),
    Column("farcaster_username", String(255), nullable=True),
    Column("farcaster_display_name", Text, nullable=True),
    Column("farcaster_pfp_url", Text, nullable=True),
    Column("farcaster_signer_uuid", Text, nullable=True),  # Neynar signer
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column(
        "updated_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
)

# Each identity is bound to at most one account
Index(
    "uq_user_connections_wallet_address",
    user_connections_table.c.wallet_address,
    unique=True,
)
Index(
    "uq_user_connections_farcaster_fid",
    user_connections_table.c.farcaster_fid,
    unique=True,
)
