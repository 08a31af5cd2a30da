"""create_user_connections

Create the Link Record table:
- One row per Session Store account (user_id = auth.users.id)
- At most one account per wallet address and per Farcaster id
- updated_at maintained by trigger

Revision ID: 3c1f9a7d52e4
Revises:
Create Date: 2025-12-27 09:15:32.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c1f9a7d52e4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # gen_random_uuid() on PostgreSQL < 13
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # ========================================================================
    # USER_CONNECTIONS table
    # ========================================================================
    op.create_table(
        "user_connections",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("wallet_address", sa.String(length=42), nullable=True),
        sa.Column("farcaster_fid", sa.BigInteger(), nullable=True),
        sa.Column("farcaster_username", sa.String(length=255), nullable=True),
        sa.Column("farcaster_display_name", sa.Text(), nullable=True),
        sa.Column("farcaster_pfp_url", sa.Text(), nullable=True),
        sa.Column("farcaster_signer_uuid", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", name="user_connections_user_id_key"),
        sa.CheckConstraint(
            "wallet_address IS NULL OR wallet_address ~ '^0x[0-9a-f]{40}$'",
            name="user_connections_wallet_address_format_check",
        ),
        sa.CheckConstraint(
            "farcaster_fid IS NULL OR farcaster_fid > 0",
            name="user_connections_farcaster_fid_positive_check",
        ),
    )

    # Each identity is bound to at most one account; NULLs do not collide
    op.create_index(
        "uq_user_connections_wallet_address",
        "user_connections",
        ["wallet_address"],
        unique=True,
    )
    op.create_index(
        "uq_user_connections_farcaster_fid",
        "user_connections",
        ["farcaster_fid"],
        unique=True,
    )

    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)

    op.execute("""
        CREATE TRIGGER update_user_connections_updated_at
        BEFORE UPDATE ON user_connections
        FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
    """)


def downgrade() -> None:
    """Downgrade schema."""
    op.execute(
        "DROP TRIGGER IF EXISTS update_user_connections_updated_at ON user_connections"
    )
    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")

    op.drop_index("uq_user_connections_farcaster_fid", table_name="user_connections")
    op.drop_index("uq_user_connections_wallet_address", table_name="user_connections")
    op.drop_table("user_connections")
