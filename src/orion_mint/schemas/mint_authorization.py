"""Mint authorization Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from orion_mint.models.mint_authorization import BIGINT_MAX
from orion_mint.services.similarity import SimilarityReport
from orion_mint.services.token_store import AuthorizationRecord
from orion_mint.utils.ethereum import checksum, to_hex


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MintAuthorizationCreate(CamelModel):
    """Schema for requesting a mint authorization."""

    creator_address: str = Field(..., description="Address allowed to redeem the authorization")
    content_hash: str = Field(..., description="32-byte content fingerprint as hex")
    ip_metadata_uri: str = Field(..., min_length=1, alias="ipMetadataURI")
    nft_metadata_uri: str = Field(..., min_length=1, alias="nftMetadataURI")


class OnChainResultPayload(CamelModel):
    ip_id: str = Field(..., description="Registered IP asset address")
    token_id: int = Field(..., ge=0, le=BIGINT_MAX)
    tx_hash: str = Field(..., description="Registration transaction hash")


class MintAuthorizationFinalize(CamelModel):
    """Schema for reporting the on-chain result of a redeemed authorization."""

    on_chain_result: OnChainResultPayload


class SimilarityMatchResponse(CamelModel):
    ip_id: str | None = None
    creator_address: str | None = None
    content_hash: str | None = None
    asset_type: str | None = None


class SimilarityResponse(CamelModel):
    """Screening outcome attached to a warning or a block."""

    score: float
    verdict: str
    top_match: SimilarityMatchResponse | None = None
    summary: str | None = None
    is_plagiarism: bool | None = None

    @classmethod
    def from_report(cls, report: SimilarityReport) -> SimilarityResponse:
        match = report.top_match
        return cls(
            score=report.score,
            verdict=report.verdict.value,
            top_match=SimilarityMatchResponse(**vars(match)) if match is not None else None,
            summary=report.summary,
            is_plagiarism=report.is_plagiarism,
        )


class MintAuthorizationIssued(CamelModel):
    """Schema returned when an authorization is issued."""

    nonce: int
    creator_address: str
    content_hash: str
    signature: str
    expires_at: int
    ttl_seconds: int
    signer: str
    signing_convention: str
    similarity: SimilarityResponse | None = None

    @classmethod
    def from_record(
        cls,
        record: AuthorizationRecord,
        signer: str,
        similarity: SimilarityReport | None = None,
    ) -> MintAuthorizationIssued:
        return cls(
            nonce=record.nonce,
            creator_address=checksum(record.creator_address),
            content_hash=to_hex(record.content_hash),
            signature=to_hex(record.signature),
            expires_at=record.expires_at,
            ttl_seconds=record.expires_at - record.created_at,
            signer=signer,
            signing_convention=record.signing_convention,
            similarity=SimilarityResponse.from_report(similarity) if similarity else None,
        )


class OnChainResultResponse(CamelModel):
    ip_id: str
    token_id: int
    tx_hash: str
    used_at: int | None = None


class MintAuthorizationResponse(CamelModel):
    """Schema for the status of an authorization as seen at ``now``."""

    nonce: int
    status: str
    creator_address: str
    content_hash: str
    ip_metadata_uri: str = Field(..., alias="ipMetadataURI")
    nft_metadata_uri: str = Field(..., alias="nftMetadataURI")
    signature: str
    signing_convention: str
    expires_at: int
    created_at: int
    is_expired: bool
    remaining_seconds: int | None = None
    on_chain_result: OnChainResultResponse | None = None

    @classmethod
    def from_record(cls, record: AuthorizationRecord, now: int) -> MintAuthorizationResponse:
        record = record.projected(now)
        result = record.on_chain_result
        return cls(
            nonce=record.nonce,
            status=record.status,
            creator_address=checksum(record.creator_address),
            content_hash=to_hex(record.content_hash),
            ip_metadata_uri=record.ip_metadata_uri,
            nft_metadata_uri=record.nft_metadata_uri,
            signature=to_hex(record.signature),
            signing_convention=record.signing_convention,
            expires_at=record.expires_at,
            created_at=record.created_at,
            is_expired=record.is_expired(now),
            remaining_seconds=record.remaining_seconds(now) if record.status == "pending" else None,
            on_chain_result=OnChainResultResponse(**vars(result)) if result else None,
        )


class CreatorAssetResponse(CamelModel):
    """Registered IP asset of a creator."""

    nonce: int
    content_hash: str
    ip_id: str
    token_id: int
    tx_hash: str
    ip_metadata_uri: str = Field(..., alias="ipMetadataURI")
    nft_metadata_uri: str = Field(..., alias="nftMetadataURI")
    used_at: int | None = None

    @classmethod
    def from_record(cls, record: AuthorizationRecord) -> CreatorAssetResponse:
        result = record.on_chain_result
        if result is None:
            raise ValueError(f"Authorization {record.nonce} has no on-chain result")
        return cls(
            nonce=record.nonce,
            content_hash=to_hex(record.content_hash),
            ip_id=result.ip_id,
            token_id=result.token_id,
            tx_hash=result.tx_hash,
            ip_metadata_uri=record.ip_metadata_uri,
            nft_metadata_uri=record.nft_metadata_uri,
            used_at=result.used_at,
        )


class SignerResponse(CamelModel):
    address: str
    signing_convention: str
