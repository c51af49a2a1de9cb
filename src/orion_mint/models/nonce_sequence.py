"""Monotonic counters backing nonce allocation."""


from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from orion_mint.db.session import Base

MINT_NONCE_SEQUENCE = "mint_authorization"


class NonceSequence(Base):
    """Named counter holding the highest value handed out so far.

    Incremented with a single conditional UPDATE so concurrent allocators in
    different processes never observe the same value.
    """

    __tablename__ = "nonce_sequence"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
