"""Signing identity for mint authorizations.

Two conventions exist for signing a 32-byte message hash and they yield
different signatures:

* ``raw``: the hash is signed as-is (``signDigest``).
* ``personal``: EIP-191 personal message; the signed digest is
  ``keccak256("\\x19Ethereum Signed Message:\\n32" || hash)`` (``signMessage``).

The verifying contract recovers with exactly one of them, so the convention is
a setting, recorded on every authorization, and never inferred.
"""
from __future__ import annotations

import logging
from enum import Enum
from functools import lru_cache
from typing import Final

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys import keys
from eth_keys.exceptions import BadSignature
from eth_keys.exceptions import ValidationError as KeyValidationError

from orion_mint.core.errors import SignerNotConfigured, ValidationError
from orion_mint.core.settings import settings
from orion_mint.utils.hash import keccak256

logger = logging.getLogger(__name__)

PERSONAL_MESSAGE_PREFIX: Final[bytes] = b"\x19Ethereum Signed Message:\n32"
MESSAGE_HASH_LENGTH: Final[int] = 32
SIGNATURE_LENGTH: Final[int] = 65


class SigningConvention(str, Enum):
    """How a message hash is turned into the digest that is signed."""

    RAW = "raw"
    PERSONAL = "personal"


def _check_message_hash(message_hash: bytes) -> bytes:
    if not isinstance(message_hash, bytes | bytearray) or len(message_hash) != MESSAGE_HASH_LENGTH:
        raise ValidationError("Message hash must be exactly 32 bytes", field="messageHash")
    return bytes(message_hash)


def convention_digest(message_hash: bytes, convention: SigningConvention) -> bytes:
    """Return the digest actually signed for ``message_hash`` under ``convention``."""
    message_hash = _check_message_hash(message_hash)
    if SigningConvention(convention) is SigningConvention.RAW:
        return message_hash
    return keccak256(PERSONAL_MESSAGE_PREFIX + message_hash)


class Signer:
    """Holds the backend verifier key and signs message hashes with it.

    The key is injected once at construction and is never exposed through
    ``repr``, logging, or serialization; only the derived address is.
    """

    def __init__(
        self,
        private_key: str | bytes,
        convention: SigningConvention | str = SigningConvention.PERSONAL,
    ) -> None:
        try:
            self._account = Account.from_key(private_key)
        except (ValueError, TypeError, KeyValidationError):
            # Suppress the cause; it may echo key material.
            raise SignerNotConfigured("Signer private key is invalid") from None
        self.convention = SigningConvention(convention)

    @property
    def address(self) -> str:
        """Checksummed address the verifying contract expects to recover."""
        return self._account.address

    def sign(self, message_hash: bytes) -> bytes:
        """Sign a 32-byte message hash under the configured convention.

        Returns:
            65 bytes ``r || s || v`` with ``v`` in ``{27, 28}``. Deterministic
            per input (RFC 6979 nonces).
        """
        message_hash = _check_message_hash(message_hash)
        if self.convention is SigningConvention.RAW:
            signed = self._account.unsafe_sign_hash(message_hash)
        else:
            signed = self._account.sign_message(encode_defunct(primitive=message_hash))
        return bytes(signed.signature)

    def __repr__(self) -> str:
        return f"Signer(address={self.address!r}, convention={self.convention.value!r})"


def parse_signature(signature: str | bytes) -> bytes:
    """Decode a 65-byte signature given as bytes or 0x-prefixed hex."""
    if isinstance(signature, str):
        digits = signature[2:] if signature.startswith("0x") else signature
        try:
            signature = bytes.fromhex(digits)
        except ValueError as err:
            raise ValidationError("Signature is not valid hex", field="signature") from err
    if len(signature) != SIGNATURE_LENGTH:
        raise ValidationError("Signature must be 65 bytes", field="signature")
    return bytes(signature)


def recover_signer(
    message_hash: bytes,
    signature: str | bytes,
    convention: SigningConvention | str,
) -> str:
    """Recover the checksummed signer address the way the verifying contract does.

    Args:
        message_hash: 32-byte hash produced by the message encoder.
        signature: 65-byte ``r || s || v`` signature (``v`` as 0/1 or 27/28).
        convention: Convention the verifier applies before ``ecrecover``.

    Raises:
        ValidationError: If the signature is malformed or unrecoverable.
    """
    raw = parse_signature(signature)
    v = raw[64]
    if v in (27, 28):
        v -= 27
    elif v not in (0, 1):
        raise ValidationError("Signature has an invalid recovery id", field="signature")

    digest = convention_digest(message_hash, SigningConvention(convention))
    try:
        recovered = keys.Signature(raw[:64] + bytes([v])).recover_public_key_from_msg_hash(digest)
    except (BadSignature, KeyValidationError) as err:
        raise ValidationError("Signature could not be recovered", field="signature") from err
    return recovered.to_checksum_address()


@lru_cache(maxsize=1)
def get_signer() -> Signer:
    """Return the process-wide signer built from settings.

    Raises:
        SignerNotConfigured: If BACKEND_VERIFIER_PRIVATE_KEY is unset.
    """
    key = settings.signer_private_key
    if key is None:
        raise SignerNotConfigured("BACKEND_VERIFIER_PRIVATE_KEY is not configured")
    signer = Signer(key.get_secret_value(), SigningConvention(settings.signing_convention))
    logger.info(
        "Loaded mint signer %s using the %s convention",
        signer.address,
        signer.convention.value,
    )
    return signer
