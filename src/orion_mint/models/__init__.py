"""SQLAlchemy models for the mint authorization service."""

from .mint_authorization import MintAuthorization
from .nonce_sequence import NonceSequence

__all__ = [
    "MintAuthorization",
    "NonceSequence",
]
