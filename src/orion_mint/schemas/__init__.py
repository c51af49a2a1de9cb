"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .mint_authorization import (
    CreatorAssetResponse,
    MintAuthorizationCreate,
    MintAuthorizationFinalize,
    MintAuthorizationIssued,
    MintAuthorizationResponse,
    OnChainResultPayload,
    SignerResponse,
    SimilarityResponse,
)

__all__ = [
    "CreatorAssetResponse",
    "MintAuthorizationCreate", "MintAuthorizationFinalize",
    "MintAuthorizationIssued", "MintAuthorizationResponse",
    "OnChainResultPayload",
    "SignerResponse",
    "SimilarityResponse",
]
