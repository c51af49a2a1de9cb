"""System endpoints exposing the public signing identity."""

from __future__ import annotations

from fastapi import APIRouter

from orion_mint.api.v1.dependencies import SignerDep
from orion_mint.schemas import SignerResponse

router = APIRouter(tags=["system"])


@router.get("/signer", response_model=SignerResponse)
def get_signer_identity(signer: SignerDep) -> SignerResponse:
    """Return the address the minting contract must trust as backend verifier.

    Args:
        signer: Process signer

    Returns:
        Checksummed signer address and the signing convention in use
    """
    return SignerResponse(address=signer.address, signing_convention=signer.convention.value)
