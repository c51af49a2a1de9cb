"""Business logic services for mint authorizations."""

from .authorization import AuthorizationService, Blocked, Issued
from .nonce import NonceAllocator
from .signing import Signer, SigningConvention
from .similarity import SimilarityClient, SimilarityPolicy
from .token_store import AuthorizationRecord, OnChainResult, TokenStore

__all__ = [
    "AuthorizationService",
    "AuthorizationRecord",
    "Blocked",
    "Issued",
    "NonceAllocator",
    "OnChainResult",
    "Signer",
    "SigningConvention",
    "SimilarityClient",
    "SimilarityPolicy",
    "TokenStore",
]
