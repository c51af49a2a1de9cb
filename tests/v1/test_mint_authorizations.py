"""Tests for the mint authorization endpoints."""

from typing import Any

from fastapi import status
from fastapi.testclient import TestClient

from orion_mint.core.errors import StoreUnavailable
from orion_mint.core.security import create_admin_token
from orion_mint.services.encoding import encode
from orion_mint.services.signing import recover_signer
from orion_mint.services.similarity import (
    SimilarityMatch,
    SimilarityReport,
    SimilarityVerdict,
    get_similarity_client,
)
from orion_mint.services.token_store import TokenStore
from tests.conftest import ADDRESS_ONE, ADDRESS_TWO, START_TIME

BASE = "/api/v1/mint-authorizations"
CONTENT_HASH = "0x" + "c0" * 32
ON_CHAIN_RESULT = {"ipId": "0x" + "ab" * 20, "tokenId": 11, "txHash": "0x" + "de" * 32}


def mint_request(**overrides: Any) -> dict[str, Any]:
    payload = {
        "creatorAddress": ADDRESS_TWO,
        "contentHash": CONTENT_HASH,
        "ipMetadataURI": "ipfs://bafy-ip",
        "nftMetadataURI": "ipfs://bafy-nft",
    }
    payload.update(overrides)
    return payload


def issue(client: TestClient, **overrides: Any) -> dict[str, Any]:
    r = client.post(BASE, json=mint_request(**overrides))
    assert r.status_code == status.HTTP_201_CREATED, r.text
    return r.json()


def admin_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {create_admin_token('ops')}"}


def test_issue_returns_signed_authorization(client: TestClient) -> None:
    data = issue(client)

    assert data["nonce"] == 1
    assert data["expiresAt"] == START_TIME + 900
    assert data["ttlSeconds"] == 900
    assert data["signer"] == ADDRESS_ONE
    assert data["signingConvention"] == "personal"
    assert data["creatorAddress"] == ADDRESS_TWO
    assert data["similarity"] is None

    message_hash = encode(
        ADDRESS_TWO,
        bytes.fromhex(CONTENT_HASH[2:]),
        "ipfs://bafy-ip",
        "ipfs://bafy-nft",
        data["nonce"],
        data["expiresAt"],
    )
    assert recover_signer(message_hash, data["signature"], data["signingConvention"]) == ADDRESS_ONE


def test_two_requests_get_consecutive_nonces(client: TestClient) -> None:
    first = issue(client, contentHash="0x" + "01" * 32)
    second = issue(client, contentHash="0x" + "02" * 32)
    assert second["nonce"] == first["nonce"] + 1


def test_pending_status_reports_remaining_time(client: TestClient, clock) -> None:
    nonce = issue(client)["nonce"]
    clock.advance(100)

    r = client.get(f"{BASE}/{nonce}")
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["status"] == "pending"
    assert data["remainingSeconds"] == 800
    assert data["isExpired"] is False
    assert data["onChainResult"] is None
    assert data["ipMetadataURI"] == "ipfs://bafy-ip"


def test_finalize_then_status_is_used(client: TestClient) -> None:
    nonce = issue(client)["nonce"]

    r = client.patch(f"{BASE}/{nonce}", json={"onChainResult": ON_CHAIN_RESULT})
    assert r.status_code == status.HTTP_200_OK
    assert r.json()["status"] == "used"

    data = client.get(f"{BASE}/{nonce}").json()
    assert data["status"] == "used"
    assert data["remainingSeconds"] is None
    assert data["onChainResult"]["ipId"] == ON_CHAIN_RESULT["ipId"]
    assert data["onChainResult"]["tokenId"] == 11
    assert data["onChainResult"]["usedAt"] == START_TIME


def test_repeated_finalize_is_idempotent(client: TestClient) -> None:
    nonce = issue(client)["nonce"]
    first = client.patch(f"{BASE}/{nonce}", json={"onChainResult": ON_CHAIN_RESULT})
    second = client.patch(f"{BASE}/{nonce}", json={"onChainResult": ON_CHAIN_RESULT})

    assert second.status_code == status.HTTP_200_OK
    assert first.json()["onChainResult"] == second.json()["onChainResult"]


def test_finalize_with_different_result_conflicts(client: TestClient) -> None:
    nonce = issue(client)["nonce"]
    client.patch(f"{BASE}/{nonce}", json={"onChainResult": ON_CHAIN_RESULT})

    r = client.patch(
        f"{BASE}/{nonce}", json={"onChainResult": {**ON_CHAIN_RESULT, "tokenId": 12}}
    )
    assert r.status_code == status.HTTP_409_CONFLICT
    detail = r.json()["detail"]
    assert detail["code"] == "ALREADY_USED"
    assert detail["existing"]["tokenId"] == 11
    assert detail["existingIpId"] == ON_CHAIN_RESULT["ipId"]


def test_expired_authorization(client: TestClient, clock) -> None:
    nonce = issue(client)["nonce"]
    clock.advance(901)

    data = client.get(f"{BASE}/{nonce}").json()
    assert data["status"] == "expired"
    assert data["isExpired"] is True
    assert data["remainingSeconds"] is None

    r = client.patch(f"{BASE}/{nonce}", json={"onChainResult": ON_CHAIN_RESULT})
    assert r.status_code == status.HTTP_410_GONE
    assert r.json()["detail"]["code"] == "EXPIRED"


def test_duplicate_content_is_rejected(client: TestClient) -> None:
    nonce = issue(client)["nonce"]
    client.patch(f"{BASE}/{nonce}", json={"onChainResult": ON_CHAIN_RESULT})

    r = client.post(BASE, json=mint_request(creatorAddress=ADDRESS_ONE))
    assert r.status_code == status.HTTP_409_CONFLICT
    detail = r.json()["detail"]
    assert detail["code"] == "DUPLICATE_CONTENT"
    assert detail["existing"]["nonce"] == nonce
    assert detail["existing"]["creatorAddress"] == ADDRESS_TWO
    assert detail["existingIpId"] == ON_CHAIN_RESULT["ipId"]


def test_invalid_address_is_a_validation_error(client: TestClient) -> None:
    r = client.post(BASE, json=mint_request(creatorAddress="0x1234"))
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    detail = r.json()["detail"]
    assert detail["code"] == "VALIDATION_ERROR"
    assert detail["field"] == "creatorAddress"


def test_malformed_content_hash_is_a_validation_error(client: TestClient) -> None:
    r = client.post(BASE, json=mint_request(contentHash="0x" + "a" * 63 + "\n"))
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    detail = r.json()["detail"]
    assert detail["code"] == "VALIDATION_ERROR"
    assert detail["field"] == "contentHash"


def test_missing_field_is_a_validation_error(client: TestClient) -> None:
    payload = mint_request()
    del payload["nftMetadataURI"]
    r = client.post(BASE, json=payload)
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["detail"]["code"] == "VALIDATION_ERROR"


def test_unknown_nonce(client: TestClient) -> None:
    r = client.get(f"{BASE}/999")
    assert r.status_code == status.HTTP_404_NOT_FOUND
    assert r.json()["detail"]["code"] == "NOT_FOUND"

    r = client.patch(f"{BASE}/999", json={"onChainResult": ON_CHAIN_RESULT})
    assert r.status_code == status.HTTP_404_NOT_FOUND


def test_out_of_range_nonce_is_a_validation_error(client: TestClient) -> None:
    nonce = 2**64
    responses = [
        client.get(f"{BASE}/{nonce}"),
        client.patch(f"{BASE}/{nonce}", json={"onChainResult": ON_CHAIN_RESULT}),
        client.post(f"{BASE}/{nonce}/revoke", headers=admin_headers()),
        client.get(f"{BASE}/-1"),
    ]
    for r in responses:
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.json()["detail"]["code"] == "VALIDATION_ERROR"


def test_token_id_beyond_storage_range_is_rejected(client: TestClient) -> None:
    nonce = issue(client)["nonce"]

    r = client.patch(
        f"{BASE}/{nonce}", json={"onChainResult": {**ON_CHAIN_RESULT, "tokenId": 2**64}}
    )
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["detail"]["code"] == "VALIDATION_ERROR"
    assert client.get(f"{BASE}/{nonce}").json()["status"] == "pending"


def test_list_by_creator(client: TestClient, clock) -> None:
    issue(client, contentHash="0x" + "01" * 32)
    second = issue(client, contentHash="0x" + "02" * 32)
    issue(client, contentHash="0x" + "03" * 32, creatorAddress=ADDRESS_ONE)
    client.patch(f"{BASE}/{second['nonce']}", json={"onChainResult": ON_CHAIN_RESULT})

    r = client.get(BASE, params={"creatorAddress": ADDRESS_TWO})
    assert r.status_code == status.HTTP_200_OK
    assert [item["nonce"] for item in r.json()] == [2, 1]

    r = client.get(BASE, params={"creatorAddress": ADDRESS_TWO, "status": "used"})
    assert [item["nonce"] for item in r.json()] == [2]

    clock.advance(901)
    r = client.get(BASE, params={"creatorAddress": ADDRESS_TWO, "status": "expired"})
    assert [item["nonce"] for item in r.json()] == [1]

    r = client.get(BASE, params={"creatorAddress": ADDRESS_TWO, "status": "bogus"})
    assert r.status_code == status.HTTP_400_BAD_REQUEST


def test_revoke_requires_admin_token(client: TestClient) -> None:
    nonce = issue(client)["nonce"]

    assert client.post(f"{BASE}/{nonce}/revoke").status_code == status.HTTP_401_UNAUTHORIZED
    r = client.post(f"{BASE}/{nonce}/revoke", headers={"Authorization": "Bearer nope"})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED

    r = client.post(f"{BASE}/{nonce}/revoke", headers=admin_headers())
    assert r.status_code == status.HTTP_200_OK
    assert r.json()["status"] == "revoked"

    r = client.patch(f"{BASE}/{nonce}", json={"onChainResult": ON_CHAIN_RESULT})
    assert r.status_code == status.HTTP_409_CONFLICT
    assert r.json()["detail"]["code"] == "REVOKED"


def test_blocked_by_similarity(client: TestClient, app) -> None:
    report = SimilarityReport(
        score=91.0,
        verdict=SimilarityVerdict.BLOCKED,
        top_match=SimilarityMatch(ip_id="0x" + "11" * 20, asset_type="image"),
        summary="Same artwork",
        is_plagiarism=True,
    )

    class BlockingClient:
        def check(self, content_hash, creator_address, ip_metadata_uri):
            return report

    app.dependency_overrides[get_similarity_client] = lambda: BlockingClient()

    r = client.post(BASE, json=mint_request())
    assert r.status_code == status.HTTP_403_FORBIDDEN
    detail = r.json()["detail"]
    assert detail["code"] == "BLOCKED"
    assert detail["similarity"]["score"] == 91.0
    assert detail["similarity"]["topMatch"]["ipId"] == "0x" + "11" * 20
    assert detail["similarity"]["isPlagiarism"] is True

    assert client.get(f"{BASE}/1").status_code == status.HTTP_404_NOT_FOUND


def test_store_outage_is_service_unavailable(client: TestClient, mocker) -> None:
    mocker.patch.object(
        TokenStore, "find_used_by_content", side_effect=StoreUnavailable("Store unavailable")
    )
    r = client.post(BASE, json=mint_request())
    assert r.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert r.json()["detail"]["code"] == "STORE_UNAVAILABLE"
