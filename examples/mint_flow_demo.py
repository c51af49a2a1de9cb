#!/usr/bin/env python3
"""Walk through the mint authorization flow against a running API.

This script shows how to:
1. Request a mint authorization for a content hash
2. Check that the returned signature recovers the advertised signer
3. Report a (simulated) on-chain result and read the final status

Usage:
    uvicorn orion_mint.main:app &
    python examples/mint_flow_demo.py --base-url http://127.0.0.1:8000
"""

from __future__ import annotations

import argparse
import secrets
import sys

import httpx

from orion_mint.services.encoding import encode
from orion_mint.services.signing import recover_signer
from orion_mint.utils.ethereum import parse_bytes32


def run_demo(base_url: str, creator: str) -> int:
    content_hash = "0x" + secrets.token_hex(32)
    ip_uri = f"ipfs://demo-ip-{content_hash[2:10]}"
    nft_uri = f"ipfs://demo-nft-{content_hash[2:10]}"

    with httpx.Client(base_url=f"{base_url.rstrip('/')}/api/v1", timeout=10.0) as client:
        signer = client.get("/signer").json()
        print(f"Signer: {signer['address']} ({signer['signingConvention']})")

        response = client.post(
            "/mint-authorizations",
            json={
                "creatorAddress": creator,
                "contentHash": content_hash,
                "ipMetadataURI": ip_uri,
                "nftMetadataURI": nft_uri,
            },
        )
        if response.status_code != httpx.codes.CREATED:
            print(f"Request failed: {response.status_code} {response.text}", file=sys.stderr)
            return 1
        issued = response.json()
        print(f"Issued nonce {issued['nonce']} expiring at {issued['expiresAt']}")

        message_hash = encode(
            creator,
            parse_bytes32(content_hash),
            ip_uri,
            nft_uri,
            issued["nonce"],
            issued["expiresAt"],
        )
        recovered = recover_signer(message_hash, issued["signature"], issued["signingConvention"])
        print(f"Recovered signer: {recovered} (match: {recovered == signer['address']})")

        # Stand-in for the identifiers the registration transaction produces.
        result = {
            "ipId": "0x" + secrets.token_hex(20),
            "tokenId": 1,
            "txHash": "0x" + secrets.token_hex(32),
        }
        finalized = client.patch(
            f"/mint-authorizations/{issued['nonce']}", json={"onChainResult": result}
        ).json()
        print(f"Status after finalize: {finalized['status']}")

        again = client.post(
            "/mint-authorizations",
            json={
                "creatorAddress": creator,
                "contentHash": content_hash,
                "ipMetadataURI": ip_uri,
                "nftMetadataURI": nft_uri,
            },
        )
        print(f"Re-request for the same content: {again.status_code} {again.json()['detail']['code']}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--base-url", default="http://127.0.0.1:8000")
    parser.add_argument("--creator", default="0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf")
    args = parser.parse_args()
    return run_demo(args.base_url, args.creator)


if __name__ == "__main__":
    sys.exit(main())
