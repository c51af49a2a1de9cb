"""Creator-facing listing endpoints."""

from fastapi import APIRouter

from orion_mint.api.v1.dependencies import AuthorizationServiceDep
from orion_mint.api.v1.errors import http_error
from orion_mint.core.errors import MintAuthorizationError
from orion_mint.schemas import CreatorAssetResponse

router = APIRouter(prefix="/creators", tags=["creators"])


@router.get("/{address}/assets", response_model=list[CreatorAssetResponse])
def list_creator_assets(address: str, service: AuthorizationServiceDep) -> list[CreatorAssetResponse]:
    """Return the IP assets a creator registered through redeemed authorizations."""
    try:
        records = service.list_assets(address)
    except MintAuthorizationError as exc:
        raise http_error(exc) from exc
    return [CreatorAssetResponse.from_record(record) for record in records]
