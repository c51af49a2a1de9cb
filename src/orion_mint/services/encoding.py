"""Canonical byte encoding of mint authorization messages.

The verifying contract recomputes::

    keccak256(abi.encodePacked(
        recipient,                 // address, 20 bytes
        contentHash,               // bytes32
        keccak256(bytes(ipURI)),   // bytes32
        keccak256(bytes(nftURI)),  // bytes32
        nonce,                     // uint256, 32 bytes big-endian
        expiry                     // uint256, 32 bytes big-endian
    ))

Any change to field order, width, or hash choice here invalidates every
signature this service issues, so the layout is pinned by byte-vector tests.
"""

from __future__ import annotations

from typing import Final

from eth_abi.packed import encode_packed

from orion_mint.core.errors import ValidationError
from orion_mint.utils.ethereum import BYTES32_LENGTH, checksum, normalize_address
from orion_mint.utils.hash import keccak256, keccak256_text

MINT_MESSAGE_TYPES: Final[tuple[str, ...]] = (
    "address",
    "bytes32",
    "bytes32",
    "bytes32",
    "uint256",
    "uint256",
)
PACKED_MESSAGE_LENGTH: Final[int] = 20 + 5 * 32
UINT256_MAX: Final[int] = 2**256 - 1


def hash_metadata_uri(uri: str) -> bytes:
    """Return ``keccak256(utf8(uri))``, the form in which URIs are signed."""
    return keccak256_text(uri)


def _check_uint256(value: int, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= UINT256_MAX:
        raise ValidationError(f"Invalid {field}: expected an unsigned 256-bit integer", field=field)
    return value


def pack_mint_message(
    creator_address: str,
    content_hash: bytes,
    ip_metadata_uri: str,
    nft_metadata_uri: str,
    nonce: int,
    expires_at: int,
) -> bytes:
    """Return the packed (non-ABI-tuple) concatenation that gets hashed.

    Args:
        creator_address: Address allowed to redeem the authorization.
        content_hash: 32-byte content fingerprint.
        ip_metadata_uri: IP metadata locator; included by its Keccak digest.
        nft_metadata_uri: NFT metadata locator; included by its Keccak digest.
        nonce: Replay-protection nonce.
        expires_at: Deadline in unix seconds.

    Returns:
        Exactly ``PACKED_MESSAGE_LENGTH`` bytes.
    """
    address = checksum(normalize_address(creator_address))
    if not isinstance(content_hash, bytes | bytearray) or len(content_hash) != BYTES32_LENGTH:
        raise ValidationError("Invalid contentHash: expected 32 bytes", field="contentHash")

    return encode_packed(
        list(MINT_MESSAGE_TYPES),
        [
            address,
            bytes(content_hash),
            hash_metadata_uri(ip_metadata_uri),
            hash_metadata_uri(nft_metadata_uri),
            _check_uint256(nonce, "nonce"),
            _check_uint256(expires_at, "expiresAt"),
        ],
    )


def encode(
    creator_address: str,
    content_hash: bytes,
    ip_metadata_uri: str,
    nft_metadata_uri: str,
    nonce: int,
    expires_at: int,
) -> bytes:
    """Return the 32-byte message hash the signer signs and the contract recomputes."""
    return keccak256(
        pack_mint_message(
            creator_address,
            content_hash,
            ip_metadata_uri,
            nft_metadata_uri,
            nonce,
            expires_at,
        )
    )
