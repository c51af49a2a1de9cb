# src/orion_mint/utils/hash.py
"""Keccak-256 helpers matching the EVM's ``keccak256`` builtin."""

from __future__ import annotations

from eth_utils import encode_hex, keccak


def keccak256(data: bytes) -> bytes:
    """Return the 32-byte Keccak-256 digest of ``data``."""
    return keccak(primitive=data)


def keccak256_hex(data: bytes) -> str:
    """Return the 0x-prefixed hexadecimal Keccak-256 digest of ``data``."""
    return encode_hex(keccak256(data))


def keccak256_text(text: str) -> bytes:
    """Return the Keccak-256 digest of the UTF-8 encoding of ``text``."""
    return keccak256(text.encode("utf-8"))
