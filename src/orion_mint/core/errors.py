"""Typed errors raised by the mint authorization components.

Every error carries a stable ``code`` so callers can branch on the class or
the code without matching message strings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from orion_mint.services.token_store import AuthorizationRecord


class MintAuthorizationError(Exception):
    """Base class for all mint authorization failures."""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(MintAuthorizationError):
    """Malformed input; rejected before any state change."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class DuplicateContent(MintAuthorizationError):
    """Content already registered under a finalized authorization."""

    code = "DUPLICATE_CONTENT"

    def __init__(
        self,
        message: str | None = None,
        *,
        existing: AuthorizationRecord | None = None,
    ) -> None:
        super().__init__(message)
        self.existing = existing


class DuplicateUsedContent(DuplicateContent):
    """The store already holds a used record for this content hash."""


class DuplicateNonce(MintAuthorizationError):
    """A record with this nonce already exists."""

    code = "DUPLICATE_NONCE"

    def __init__(self, nonce: int) -> None:
        super().__init__(f"Nonce {nonce} already exists")
        self.nonce = nonce


class ServiceBusy(MintAuthorizationError):
    """The request conflicted with concurrent work; retry later."""

    code = "SERVICE_BUSY"


class TransientConflict(ServiceBusy):
    """Nonce allocation kept colliding after the internal retry."""


class NotFound(MintAuthorizationError):
    """No authorization exists for the requested nonce."""

    code = "NOT_FOUND"

    def __init__(self, nonce: int) -> None:
        super().__init__(f"Mint authorization {nonce} not found")
        self.nonce = nonce


class AlreadyUsed(MintAuthorizationError):
    """The authorization has already been redeemed on-chain."""

    code = "ALREADY_USED"

    def __init__(self, existing: AuthorizationRecord) -> None:
        super().__init__(f"Mint authorization {existing.nonce} has already been used")
        self.existing = existing


class Expired(MintAuthorizationError):
    """The authorization passed its deadline without being redeemed."""

    code = "EXPIRED"

    def __init__(self, existing: AuthorizationRecord) -> None:
        super().__init__(f"Mint authorization {existing.nonce} has expired")
        self.existing = existing


class Revoked(MintAuthorizationError):
    """The authorization was revoked by an administrator."""

    code = "REVOKED"

    def __init__(self, existing: AuthorizationRecord) -> None:
        super().__init__(f"Mint authorization {existing.nonce} has been revoked")
        self.existing = existing


class StoreUnavailable(MintAuthorizationError):
    """The authorization store could not be reached in time."""

    code = "STORE_UNAVAILABLE"


class SimilarityUnavailable(MintAuthorizationError):
    """The similarity checker failed; no authorization was issued."""

    code = "SIMILARITY_UNAVAILABLE"


class SignerNotConfigured(MintAuthorizationError):
    """No signing key is configured for this process."""

    code = "SIGNER_NOT_CONFIGURED"
