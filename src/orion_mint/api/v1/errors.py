"""Translation of domain errors into HTTP responses."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status

from orion_mint.core.errors import (
    AlreadyUsed,
    DuplicateContent,
    Expired,
    MintAuthorizationError,
    NotFound,
    Revoked,
    ServiceBusy,
    SignerNotConfigured,
    SimilarityUnavailable,
    StoreUnavailable,
    ValidationError,
)
from orion_mint.services.token_store import AuthorizationRecord
from orion_mint.utils.ethereum import checksum, to_hex

_STATUS_CODES: tuple[tuple[type[MintAuthorizationError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (DuplicateContent, status.HTTP_409_CONFLICT),
    (AlreadyUsed, status.HTTP_409_CONFLICT),
    (Revoked, status.HTTP_409_CONFLICT),
    (Expired, status.HTTP_410_GONE),
    (ServiceBusy, status.HTTP_503_SERVICE_UNAVAILABLE),
    (StoreUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
    (SimilarityUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
    (SignerNotConfigured, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def _existing_summary(record: AuthorizationRecord) -> dict[str, Any]:
    result = record.on_chain_result
    return {
        "nonce": record.nonce,
        "creatorAddress": checksum(record.creator_address),
        "contentHash": to_hex(record.content_hash),
        "status": record.status,
        "ipId": result.ip_id if result else None,
        "tokenId": result.token_id if result else None,
        "txHash": result.tx_hash if result else None,
    }


def error_detail(exc: MintAuthorizationError) -> dict[str, Any]:
    """Return the ``{code, message, ...}`` body for ``exc``."""
    detail: dict[str, Any] = {"code": exc.code, "message": exc.message}
    if isinstance(exc, ValidationError) and exc.field:
        detail["field"] = exc.field
    existing = getattr(exc, "existing", None)
    if existing is not None:
        detail["existing"] = _existing_summary(existing)
        if existing.on_chain_result is not None:
            detail["existingIpId"] = existing.on_chain_result.ip_id
    return detail


def http_error(exc: MintAuthorizationError) -> HTTPException:
    """Build the HTTPException answering ``exc``."""
    code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            code = status_code
            break
    headers = {"Retry-After": "1"} if isinstance(exc, ServiceBusy) else None
    return HTTPException(status_code=code, detail=error_detail(exc), headers=headers)
