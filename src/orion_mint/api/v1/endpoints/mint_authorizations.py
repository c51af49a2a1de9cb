"""Mint authorization endpoints."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, Query, status

from orion_mint.api.v1.dependencies import (
    AdminDep,
    AuthorizationServiceDep,
    ClockDep,
)
from orion_mint.api.v1.errors import http_error
from orion_mint.core.errors import MintAuthorizationError
from orion_mint.models.mint_authorization import BIGINT_MAX, STATUSES
from orion_mint.schemas import (
    MintAuthorizationCreate,
    MintAuthorizationFinalize,
    MintAuthorizationIssued,
    MintAuthorizationResponse,
    SimilarityResponse,
)
from orion_mint.services.authorization import Blocked
from orion_mint.services.token_store import OnChainResult

logger = logging.getLogger(__name__)

NonceParam = Annotated[int, Path(ge=0, le=BIGINT_MAX)]

router = APIRouter(prefix="/mint-authorizations", tags=["mint-authorizations"])


@router.post("", response_model=MintAuthorizationIssued, status_code=status.HTTP_201_CREATED)
def create_mint_authorization(
    payload: MintAuthorizationCreate,
    service: AuthorizationServiceDep,
) -> MintAuthorizationIssued:
    """Issue a signed, single-use authorization to mint the given content.

    Args:
        payload: Creator address, content hash and metadata URIs
        service: Authorization service

    Returns:
        Nonce, signature and deadline to pass to the minting contract

    Raises:
        HTTPException: 409 for registered content, 403 when screening blocks
            the content, 400 for malformed input, 503 when a dependency fails
    """
    try:
        outcome = service.request_authorization(
            payload.creator_address,
            payload.content_hash,
            payload.ip_metadata_uri,
            payload.nft_metadata_uri,
        )
    except MintAuthorizationError as exc:
        raise http_error(exc) from exc

    if isinstance(outcome, Blocked):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "code": "BLOCKED",
                "message": "Content is too similar to a registered asset",
                "similarity": SimilarityResponse.from_report(outcome.similarity).model_dump(
                    by_alias=True
                ),
            },
        )
    return MintAuthorizationIssued.from_record(
        outcome.record,
        signer=service.signer.address,
        similarity=outcome.similarity,
    )


@router.get("", response_model=list[MintAuthorizationResponse])
def list_mint_authorizations(
    service: AuthorizationServiceDep,
    clock: ClockDep,
    creator_address: Annotated[str, Query(alias="creatorAddress")],
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> list[MintAuthorizationResponse]:
    """List a creator's authorizations, newest first."""
    if status_filter is not None and status_filter not in STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": "VALIDATION_ERROR",
                "message": f"status must be one of {', '.join(STATUSES)}",
                "field": "status",
            },
        )
    try:
        records = service.list_by_creator(creator_address, status_filter)
    except MintAuthorizationError as exc:
        raise http_error(exc) from exc
    now = clock()
    return [MintAuthorizationResponse.from_record(record, now) for record in records]


@router.get("/{nonce}", response_model=MintAuthorizationResponse)
def get_mint_authorization(
    nonce: NonceParam,
    service: AuthorizationServiceDep,
    clock: ClockDep,
) -> MintAuthorizationResponse:
    """Return the current status of an authorization.

    A pending authorization past its deadline is reported as expired.
    """
    try:
        record = service.check_status(nonce)
    except MintAuthorizationError as exc:
        raise http_error(exc) from exc
    return MintAuthorizationResponse.from_record(record, clock())


@router.patch("/{nonce}", response_model=MintAuthorizationResponse)
def finalize_mint_authorization(
    nonce: NonceParam,
    payload: MintAuthorizationFinalize,
    service: AuthorizationServiceDep,
    clock: ClockDep,
) -> MintAuthorizationResponse:
    """Record the on-chain registration produced by redeeming an authorization.

    Repeating the call with the same result is answered with the stored record.
    """
    result = OnChainResult(
        ip_id=payload.on_chain_result.ip_id,
        token_id=payload.on_chain_result.token_id,
        tx_hash=payload.on_chain_result.tx_hash,
    )
    try:
        record = service.finalize(nonce, result)
    except MintAuthorizationError as exc:
        raise http_error(exc) from exc
    return MintAuthorizationResponse.from_record(record, clock())


@router.post("/{nonce}/revoke", response_model=MintAuthorizationResponse)
def revoke_mint_authorization(
    nonce: NonceParam,
    admin: AdminDep,
    service: AuthorizationServiceDep,
    clock: ClockDep,
) -> MintAuthorizationResponse:
    """Revoke a pending authorization (administrators only)."""
    try:
        record = service.revoke(nonce)
    except MintAuthorizationError as exc:
        raise http_error(exc) from exc
    logger.info("Authorization %s revoked by %s", nonce, admin)
    return MintAuthorizationResponse.from_record(record, clock())
