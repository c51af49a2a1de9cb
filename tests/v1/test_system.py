"""Tests for signer and creator asset endpoints."""

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from orion_mint.api.v1.dependencies import get_signer_dep
from orion_mint.core.errors import SignerNotConfigured
from orion_mint.schemas import CreatorAssetResponse
from tests.conftest import ADDRESS_ONE, ADDRESS_TWO, make_record


def test_signer_identity(client: TestClient) -> None:
    r = client.get("/api/v1/signer")
    assert r.status_code == status.HTTP_200_OK
    assert r.json() == {"address": ADDRESS_ONE, "signingConvention": "personal"}


def test_missing_signer_is_service_unavailable(client: TestClient, app, mocker) -> None:
    app.dependency_overrides.pop(get_signer_dep)
    mocker.patch(
        "orion_mint.api.v1.dependencies.get_signer",
        side_effect=SignerNotConfigured("BACKEND_VERIFIER_PRIVATE_KEY is not configured"),
    )

    r = client.get("/api/v1/signer")
    assert r.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert r.json()["detail"]["code"] == "SIGNER_NOT_CONFIGURED"


def test_creator_assets_lists_registered_content(client: TestClient) -> None:
    payload = {
        "creatorAddress": ADDRESS_TWO,
        "ipMetadataURI": "ipfs://ip",
        "nftMetadataURI": "ipfs://nft",
    }
    used = client.post(
        "/api/v1/mint-authorizations", json={**payload, "contentHash": "0x" + "01" * 32}
    ).json()
    client.post("/api/v1/mint-authorizations", json={**payload, "contentHash": "0x" + "02" * 32})
    client.patch(
        f"/api/v1/mint-authorizations/{used['nonce']}",
        json={"onChainResult": {"ipId": "0x" + "ab" * 20, "tokenId": 5, "txHash": "0x" + "cd" * 32}},
    )

    r = client.get(f"/api/v1/creators/{ADDRESS_TWO}/assets")
    assert r.status_code == status.HTTP_200_OK
    assets = r.json()
    assert len(assets) == 1
    assert assets[0]["nonce"] == used["nonce"]
    assert assets[0]["ipId"] == "0x" + "ab" * 20
    assert assets[0]["contentHash"] == "0x" + "01" * 32

    assert client.get("/api/v1/creators/not-an-address/assets").status_code == 400


def test_asset_response_requires_an_on_chain_result() -> None:
    with pytest.raises(ValueError, match="no on-chain result"):
        CreatorAssetResponse.from_record(make_record(4))
