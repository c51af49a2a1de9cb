"""Issue and track signed mint authorizations."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from orion_mint.core.errors import (
    DuplicateContent,
    DuplicateNonce,
    DuplicateUsedContent,
    TransientConflict,
    ValidationError,
)
from orion_mint.core.settings import settings
from orion_mint.db.time import unix_now
from orion_mint.models.mint_authorization import BIGINT_MAX, STATUS_PENDING
from orion_mint.services import encoding
from orion_mint.services.nonce import NonceAllocator
from orion_mint.services.signing import Signer
from orion_mint.services.similarity import SimilarityClient, SimilarityReport, SimilarityVerdict
from orion_mint.services.token_store import AuthorizationRecord, OnChainResult, TokenStore
from orion_mint.utils.ethereum import normalize_address, parse_bytes32

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Issued:
    """A signed authorization was persisted; ``similarity`` carries any warning."""

    record: AuthorizationRecord
    similarity: SimilarityReport | None = None


@dataclass(frozen=True)
class Blocked:
    """Screening rejected the content; nothing was allocated or stored."""

    similarity: SimilarityReport


AuthorizationOutcome = Issued | Blocked


def _require_uri(value: object, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid {field}: expected a non-empty string", field=field)
    return value


class AuthorizationService:
    """Orchestrates validation, screening, nonce allocation, signing and storage.

    Args:
        store: Persistence for authorization records.
        allocator: Source of replay-protection nonces.
        signer: Backend verifier identity.
        ttl_seconds: Lifetime of a new authorization; defaults to
            MINT_TOKEN_TTL_SECONDS.
        clock: Returns the current unix time in seconds.
        similarity: Optional screening client; None disables screening.
    """

    def __init__(
        self,
        store: TokenStore,
        allocator: NonceAllocator,
        signer: Signer,
        *,
        ttl_seconds: int | None = None,
        clock: Callable[[], int] = unix_now,
        similarity: SimilarityClient | None = None,
    ) -> None:
        self.store = store
        self.allocator = allocator
        self.signer = signer
        self.ttl_seconds = settings.mint_token_ttl_seconds if ttl_seconds is None else ttl_seconds
        self.clock = clock
        self.similarity = similarity

    def request_authorization(
        self,
        creator_address: str,
        content_hash: bytes | str,
        ip_metadata_uri: str,
        nft_metadata_uri: str,
    ) -> AuthorizationOutcome:
        """Issue a signed, single-use authorization for one content hash.

        Raises:
            ValidationError: Malformed input; nothing was changed.
            DuplicateContent: The content hash is already registered.
            SimilarityUnavailable: Screening is enabled but failed.
            TransientConflict: Nonce allocation kept colliding.
            StoreUnavailable: The store could not be reached.
        """
        creator = normalize_address(creator_address)
        if isinstance(content_hash, str):
            content_hash = parse_bytes32(content_hash)
        elif not isinstance(content_hash, bytes | bytearray) or len(content_hash) != 32:
            raise ValidationError("Invalid contentHash: expected 32 bytes", field="contentHash")
        content_hash = bytes(content_hash)
        ip_metadata_uri = _require_uri(ip_metadata_uri, "ipMetadataURI")
        nft_metadata_uri = _require_uri(nft_metadata_uri, "nftMetadataURI")

        existing = self.store.find_used_by_content(content_hash)
        if existing is not None:
            logger.info("Rejected duplicate content for creator %s (nonce %s)", creator, existing.nonce)
            raise DuplicateContent("Content already registered", existing=existing)

        report = None
        if self.similarity is not None:
            report = self.similarity.check(content_hash, creator, ip_metadata_uri)
            if report.verdict is SimilarityVerdict.BLOCKED:
                logger.info("Blocked mint request for %s at score %.1f", creator, report.score)
                return Blocked(report)
            if report.verdict is SimilarityVerdict.CLEAN:
                report = None

        record = self._issue(creator, content_hash, ip_metadata_uri, nft_metadata_uri)
        return Issued(record, report)

    def _issue(
        self,
        creator: str,
        content_hash: bytes,
        ip_metadata_uri: str,
        nft_metadata_uri: str,
    ) -> AuthorizationRecord:
        for attempt in range(2):
            nonce = self.allocator.next_nonce()
            now = self.clock()
            expires_at = now + self.ttl_seconds
            message_hash = encoding.encode(
                creator, content_hash, ip_metadata_uri, nft_metadata_uri, nonce, expires_at
            )
            record = AuthorizationRecord(
                nonce=nonce,
                creator_address=creator,
                content_hash=content_hash,
                ip_metadata_uri=ip_metadata_uri,
                nft_metadata_uri=nft_metadata_uri,
                signature=self.signer.sign(message_hash),
                signing_convention=self.signer.convention.value,
                expires_at=expires_at,
                status=STATUS_PENDING,
                created_at=now,
            )
            try:
                stored = self.store.create(record)
            except DuplicateUsedContent as exc:
                raise DuplicateContent("Content already registered", existing=exc.existing) from exc
            except DuplicateNonce:
                if attempt:
                    break
                self.allocator.resync()
                continue
            logger.info(
                "Issued mint authorization %s for %s expiring at %s",
                stored.nonce,
                creator,
                stored.expires_at,
            )
            return stored
        logger.error("Nonce allocation collided twice for creator %s", creator)
        raise TransientConflict("Nonce allocation conflicted; retry the request")

    def check_status(self, nonce: int) -> AuthorizationRecord:
        return self.store.get(nonce, self.clock())

    def finalize(self, nonce: int, result: OnChainResult) -> AuthorizationRecord:
        """Record the on-chain result of redeeming ``nonce``."""
        ip_id = normalize_address(result.ip_id, field="ipId")
        token_id = result.token_id
        if isinstance(token_id, bool) or not isinstance(token_id, int):
            raise ValidationError("Invalid tokenId: expected an integer", field="tokenId")
        if not 0 <= token_id <= BIGINT_MAX:
            raise ValidationError(
                f"Invalid tokenId: expected an integer between 0 and {BIGINT_MAX}", field="tokenId"
            )
        parse_bytes32(result.tx_hash, field="txHash")
        result = OnChainResult(ip_id=ip_id, token_id=token_id, tx_hash=result.tx_hash.lower())
        return self.store.finalize(nonce, result, self.clock())

    def revoke(self, nonce: int) -> AuthorizationRecord:
        return self.store.revoke(nonce, self.clock())

    def list_by_creator(
        self,
        creator_address: str,
        status: str | None = None,
    ) -> list[AuthorizationRecord]:
        creator = normalize_address(creator_address)
        return self.store.list_by_creator(creator, self.clock(), status=status)

    def list_assets(self, creator_address: str) -> list[AuthorizationRecord]:
        """Used authorizations of a creator that registered an IP asset."""
        return self.store.list_assets(normalize_address(creator_address))
