"""mint authorization

Revision ID: 5b1e0c3a9d42
Revises:
Create Date: 2026-10-17 09:12:41.503218

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b1e0c3a9d42"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the authorization and nonce sequence tables."""
    op.create_table(
        "mint_authorization",
        sa.Column("nonce", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("creator_address", sa.String(length=42), nullable=False),
        sa.Column("content_hash", sa.LargeBinary(length=32), nullable=False),
        sa.Column("ip_metadata_uri", sa.Text(), nullable=False),
        sa.Column("nft_metadata_uri", sa.Text(), nullable=False),
        sa.Column("signature", sa.LargeBinary(length=65), nullable=False),
        sa.Column("signing_convention", sa.String(length=16), nullable=False),
        sa.Column("expires_at", sa.BigInteger(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
        sa.Column("ip_id", sa.String(length=42), nullable=True),
        sa.Column("token_id", sa.BigInteger(), nullable=True),
        sa.Column("tx_hash", sa.String(length=66), nullable=True),
        sa.Column("used_at", sa.BigInteger(), nullable=True),
        sa.PrimaryKeyConstraint("nonce"),
    )
    op.create_index(
        "ix_mint_authorization_creator_address", "mint_authorization", ["creator_address"]
    )
    op.create_index("ix_mint_authorization_content_hash", "mint_authorization", ["content_hash"])
    op.create_index("ix_mint_authorization_expires_at", "mint_authorization", ["expires_at"])
    op.create_index("ix_mint_authorization_status", "mint_authorization", ["status"])
    op.create_index(
        "uq_mint_authorization_used_content",
        "mint_authorization",
        ["content_hash"],
        unique=True,
        sqlite_where=sa.text("status = 'used'"),
        postgresql_where=sa.text("status = 'used'"),
    )

    op.create_table(
        "nonce_sequence",
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("value", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("name"),
    )


def downgrade() -> None:
    """Drop the authorization tables."""
    op.drop_table("nonce_sequence")
    op.drop_index("uq_mint_authorization_used_content", table_name="mint_authorization")
    op.drop_index("ix_mint_authorization_status", table_name="mint_authorization")
    op.drop_index("ix_mint_authorization_expires_at", table_name="mint_authorization")
    op.drop_index("ix_mint_authorization_content_hash", table_name="mint_authorization")
    op.drop_index("ix_mint_authorization_creator_address", table_name="mint_authorization")
    op.drop_table("mint_authorization")
