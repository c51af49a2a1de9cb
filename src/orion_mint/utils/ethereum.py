"""Parsing helpers for addresses and fixed-width hex values."""

from __future__ import annotations

import re

from eth_utils import is_address, to_checksum_address

from orion_mint.core.errors import ValidationError

BYTES32_LENGTH = 32
_HEX_RE = re.compile(r"(0x)?[0-9a-fA-F]*")


def normalize_address(value: object, field: str = "creatorAddress") -> str:
    """Return ``value`` as a lowercase 0x-prefixed address.

    Mixed-case input must carry a valid EIP-55 checksum.

    Raises:
        ValidationError: If ``value`` is not a 20-byte hex address.
    """
    if not isinstance(value, str) or not value.startswith("0x") or not is_address(value):
        raise ValidationError(f"Invalid {field}: expected a 0x-prefixed address", field=field)
    return value.lower()


def checksum(address: str) -> str:
    """Return the EIP-55 checksummed form of a valid address."""
    return to_checksum_address(address)


def parse_bytes32(value: object, field: str = "contentHash") -> bytes:
    """Decode a 32-byte hex string (with or without the 0x prefix).

    Raises:
        ValidationError: If ``value`` is not exactly 32 bytes of hex.
    """
    if not isinstance(value, str) or not _HEX_RE.fullmatch(value):
        raise ValidationError(f"Invalid {field}: expected 32 bytes of hex", field=field)
    digits = value[2:] if value.startswith("0x") else value
    if len(digits) != BYTES32_LENGTH * 2:
        raise ValidationError(f"Invalid {field}: expected 32 bytes of hex", field=field)
    try:
        return bytes.fromhex(digits)
    except ValueError:
        raise ValidationError(f"Invalid {field}: expected 32 bytes of hex", field=field) from None


def to_hex(data: bytes) -> str:
    """Return ``data`` as lowercase 0x-prefixed hex."""
    return "0x" + data.hex()
