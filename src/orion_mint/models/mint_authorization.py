"""SQLAlchemy model for issued mint authorizations."""

from sqlalchemy import BigInteger, Index, LargeBinary, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from orion_mint.db.session import Base

STATUS_PENDING = "pending"
STATUS_USED = "used"
STATUS_EXPIRED = "expired"
STATUS_REVOKED = "revoked"

STATUSES = (STATUS_PENDING, STATUS_USED, STATUS_EXPIRED, STATUS_REVOKED)
# Largest value a BIGINT column holds.
BIGINT_MAX = 2**63 - 1


class MintAuthorization(Base):
    """Signed, single-use, time-bound permission to mint one content hash.

    Rows move ``pending -> used | expired | revoked`` and never leave a
    terminal status. Timestamps are unix seconds so the stored deadline is the
    exact integer that was signed.
    """

    __tablename__ = "mint_authorization"

    nonce: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    # Lowercase 0x-prefixed hex.
    creator_address: Mapped[str] = mapped_column(String(42), nullable=False, index=True)
    content_hash: Mapped[bytes] = mapped_column(LargeBinary(32), nullable=False, index=True)
    ip_metadata_uri: Mapped[str] = mapped_column(Text, nullable=False)
    nft_metadata_uri: Mapped[str] = mapped_column(Text, nullable=False)

    # 65 bytes r || s || v with v in {27, 28}.
    signature: Mapped[bytes] = mapped_column(LargeBinary(65), nullable=False)
    signing_convention: Mapped[str] = mapped_column(String(16), nullable=False)
    expires_at: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=STATUS_PENDING, index=True
    )
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # On-chain result, present only once the authorization is used.
    ip_id: Mapped[str | None] = mapped_column(String(42), nullable=True)
    token_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    tx_hash: Mapped[str | None] = mapped_column(String(66), nullable=True)
    used_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    __table_args__ = (
        # At most one used authorization per content hash.
        Index(
            "uq_mint_authorization_used_content",
            "content_hash",
            unique=True,
            sqlite_where=text("status = 'used'"),
            postgresql_where=text("status = 'used'"),
        ),
    )
