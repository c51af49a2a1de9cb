"""Persistence of mint authorization records and their lifecycle.

Every state transition is a single status-guarded statement so concurrent
writers, in this process or another instance, cannot both win.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from sqlalchemy import (
    BigInteger,
    LargeBinary,
    String,
    Text,
    and_,
    delete,
    insert,
    literal,
    or_,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from orion_mint.core.errors import (
    AlreadyUsed,
    DuplicateNonce,
    DuplicateUsedContent,
    Expired,
    NotFound,
    Revoked,
    ValidationError,
)
from orion_mint.db.session import store_guard
from orion_mint.models import MintAuthorization
from orion_mint.models.mint_authorization import (
    STATUS_EXPIRED,
    STATUS_PENDING,
    STATUS_REVOKED,
    STATUS_USED,
    STATUSES,
)

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 100


@dataclass(frozen=True)
class OnChainResult:
    """Identifiers produced when the authorization was redeemed on-chain."""

    ip_id: str
    token_id: int
    tx_hash: str
    used_at: int | None = None

    def matches(self, other: OnChainResult) -> bool:
        """Return True when both describe the same registration."""
        return (
            self.ip_id.lower() == other.ip_id.lower()
            and self.token_id == other.token_id
            and self.tx_hash.lower() == other.tx_hash.lower()
        )


@dataclass(frozen=True)
class AuthorizationRecord:
    """Immutable snapshot of one mint authorization."""

    nonce: int
    creator_address: str
    content_hash: bytes
    ip_metadata_uri: str
    nft_metadata_uri: str
    signature: bytes
    signing_convention: str
    expires_at: int
    status: str
    created_at: int
    on_chain_result: OnChainResult | None = None

    def is_expired(self, now: int) -> bool:
        return now > self.expires_at

    def effective_status(self, now: int) -> str:
        """Status as reported to readers; a lapsed pending record is expired."""
        if self.status == STATUS_PENDING and self.is_expired(now):
            return STATUS_EXPIRED
        return self.status

    def projected(self, now: int) -> AuthorizationRecord:
        status = self.effective_status(now)
        return self if status == self.status else replace(self, status=status)

    def remaining_seconds(self, now: int) -> int:
        return max(0, self.expires_at - now)

    @classmethod
    def from_model(cls, model: MintAuthorization) -> AuthorizationRecord:
        result = None
        if model.status == STATUS_USED and model.ip_id is not None:
            result = OnChainResult(
                ip_id=model.ip_id,
                token_id=int(model.token_id or 0),
                tx_hash=model.tx_hash or "",
                used_at=model.used_at,
            )
        return cls(
            nonce=int(model.nonce),
            creator_address=model.creator_address,
            content_hash=bytes(model.content_hash),
            ip_metadata_uri=model.ip_metadata_uri,
            nft_metadata_uri=model.nft_metadata_uri,
            signature=bytes(model.signature),
            signing_convention=model.signing_convention,
            expires_at=int(model.expires_at),
            status=model.status,
            created_at=int(model.created_at),
            on_chain_result=result,
        )


def _status_filter(status: str, now: int):
    """SQL condition matching records whose *effective* status is ``status``."""
    if status == STATUS_PENDING:
        return and_(
            MintAuthorization.status == STATUS_PENDING,
            MintAuthorization.expires_at >= now,
        )
    if status == STATUS_EXPIRED:
        return or_(
            MintAuthorization.status == STATUS_EXPIRED,
            and_(
                MintAuthorization.status == STATUS_PENDING,
                MintAuthorization.expires_at < now,
            ),
        )
    return MintAuthorization.status == status


class TokenStore:
    """SQLAlchemy-backed store of authorization records keyed by nonce."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def create(self, record: AuthorizationRecord) -> AuthorizationRecord:
        """Persist a new pending record.

        The insert is conditional on no used record existing for the same
        content hash, so the duplicate check and the write are one statement.

        Raises:
            DuplicateUsedContent: A used record already holds the content hash.
            DuplicateNonce: A record with this nonce already exists.
            StoreUnavailable: The store could not be reached.
        """
        table = MintAuthorization.__table__
        used = table.alias("used_authorization")
        already_used = (
            select(used.c.nonce)
            .where(
                used.c.content_hash == literal(record.content_hash, LargeBinary),
                used.c.status == STATUS_USED,
            )
            .exists()
        )
        values = select(
            literal(record.nonce, BigInteger),
            literal(record.creator_address, String),
            literal(record.content_hash, LargeBinary),
            literal(record.ip_metadata_uri, Text),
            literal(record.nft_metadata_uri, Text),
            literal(record.signature, LargeBinary),
            literal(record.signing_convention, String),
            literal(record.expires_at, BigInteger),
            literal(STATUS_PENDING, String),
            literal(record.created_at, BigInteger),
        ).where(~already_used)
        stmt = insert(table).from_select(
            [
                "nonce",
                "creator_address",
                "content_hash",
                "ip_metadata_uri",
                "nft_metadata_uri",
                "signature",
                "signing_convention",
                "expires_at",
                "status",
                "created_at",
            ],
            values,
        )

        try:
            with store_guard("create"):
                with self._session_factory() as session, session.begin():
                    inserted = session.execute(stmt).rowcount
        except IntegrityError as err:
            logger.warning("Nonce %s collided with an existing authorization", record.nonce)
            raise DuplicateNonce(record.nonce) from err

        if not inserted:
            existing = self.find_used_by_content(record.content_hash)
            raise DuplicateUsedContent(
                "Content already registered under a used authorization",
                existing=existing,
            )
        return replace(record, status=STATUS_PENDING, on_chain_result=None)

    def get(self, nonce: int, now: int) -> AuthorizationRecord:
        """Return the record for ``nonce`` with lapsed pendings reported expired.

        Raises:
            NotFound: No record has this nonce.
        """
        with store_guard("get"), self._session_factory() as session:
            model = session.get(MintAuthorization, nonce)
            if model is None:
                raise NotFound(nonce)
            record = AuthorizationRecord.from_model(model)
        return record.projected(now)

    def finalize(self, nonce: int, result: OnChainResult, now: int) -> AuthorizationRecord:
        """Mark a pending record used with its on-chain result.

        Repeating the call with the same result returns the stored record.

        Raises:
            NotFound: No record has this nonce.
            AlreadyUsed: The record was used with a different result.
            Expired: The deadline passed; the record is persisted as expired.
            Revoked: The record was revoked.
            DuplicateUsedContent: Another record for the same content is used.
        """
        used_at = result.used_at if result.used_at is not None else now
        try:
            with store_guard("finalize"):
                with self._session_factory() as session, session.begin():
                    updated = session.execute(
                        update(MintAuthorization)
                        .where(
                            MintAuthorization.nonce == nonce,
                            MintAuthorization.status == STATUS_PENDING,
                            MintAuthorization.expires_at >= now,
                        )
                        .values(
                            status=STATUS_USED,
                            ip_id=result.ip_id.lower(),
                            token_id=result.token_id,
                            tx_hash=result.tx_hash.lower(),
                            used_at=used_at,
                        )
                    ).rowcount
                    model = session.get(MintAuthorization, nonce, populate_existing=True)
                    if model is None:
                        raise NotFound(nonce)
                    record = AuthorizationRecord.from_model(model)
                    if updated:
                        logger.info("Mint authorization %s finalized as used", nonce)
                        return record
                    lapsed = self._check_transition(session, record, now)
        except IntegrityError as err:
            existing = self.find_used_by_content(self.get(nonce, now).content_hash)
            logger.warning("Content of authorization %s is already used elsewhere", nonce)
            raise DuplicateUsedContent(
                "Content already registered under another used authorization",
                existing=existing,
            ) from err

        if lapsed is not None:
            raise Expired(lapsed)
        # Only a used record reaches this point.
        if record.on_chain_result is not None and record.on_chain_result.matches(result):
            logger.info("Repeated finalize for authorization %s with the same result", nonce)
            return record
        raise AlreadyUsed(record)

    def revoke(self, nonce: int, now: int) -> AuthorizationRecord:
        """Administratively revoke a pending record.

        Revoking a revoked record returns it unchanged.

        Raises:
            NotFound: No record has this nonce.
            AlreadyUsed: The record was already redeemed.
            Expired: The deadline passed; the record is persisted as expired.
        """
        with store_guard("revoke"):
            with self._session_factory() as session, session.begin():
                updated = session.execute(
                    update(MintAuthorization)
                    .where(
                        MintAuthorization.nonce == nonce,
                        MintAuthorization.status == STATUS_PENDING,
                        MintAuthorization.expires_at >= now,
                    )
                    .values(status=STATUS_REVOKED)
                ).rowcount
                model = session.get(MintAuthorization, nonce, populate_existing=True)
                if model is None:
                    raise NotFound(nonce)
                record = AuthorizationRecord.from_model(model)
                if updated:
                    logger.info("Mint authorization %s revoked", nonce)
                    return record
                if record.status == STATUS_USED:
                    raise AlreadyUsed(record)
                lapsed = None
                if record.status != STATUS_REVOKED:
                    lapsed = self._check_transition(session, record, now)

        if lapsed is not None:
            raise Expired(lapsed)
        return record

    def _check_transition(
        self,
        session: Session,
        record: AuthorizationRecord,
        now: int,
    ) -> AuthorizationRecord | None:
        """Handle a record a guarded transition did not match.

        Returns the record to report as expired, persisting the expiry when the
        stored status is still pending. Raises ``Revoked`` for revoked records.
        Returns None for used records.
        """
        if record.status == STATUS_REVOKED:
            raise Revoked(record)
        if record.status == STATUS_EXPIRED:
            return record
        if record.status == STATUS_PENDING:
            session.execute(
                update(MintAuthorization)
                .where(
                    MintAuthorization.nonce == record.nonce,
                    MintAuthorization.status == STATUS_PENDING,
                )
                .values(status=STATUS_EXPIRED)
            )
            logger.info("Mint authorization %s expired at %s", record.nonce, record.expires_at)
            return replace(record, status=STATUS_EXPIRED)
        return None

    def find_used_by_content(self, content_hash: bytes) -> AuthorizationRecord | None:
        """Return the used record holding ``content_hash``, if any."""
        with store_guard("find_used_by_content"), self._session_factory() as session:
            model = session.execute(
                select(MintAuthorization).where(
                    MintAuthorization.content_hash == content_hash,
                    MintAuthorization.status == STATUS_USED,
                )
            ).scalar_one_or_none()
            return AuthorizationRecord.from_model(model) if model is not None else None

    def list_by_creator(
        self,
        creator_address: str,
        now: int,
        status: str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[AuthorizationRecord]:
        """Return a creator's records, newest first, filtered by effective status."""
        if status is not None and status not in STATUSES:
            raise ValidationError(f"Invalid status: {status}", field="status")
        query = select(MintAuthorization).where(
            MintAuthorization.creator_address == creator_address
        )
        if status is not None:
            query = query.where(_status_filter(status, now))
        query = query.order_by(MintAuthorization.nonce.desc()).limit(limit)

        with store_guard("list_by_creator"), self._session_factory() as session:
            models = session.execute(query).scalars().all()
            return [AuthorizationRecord.from_model(m).projected(now) for m in models]

    def list_assets(self, creator_address: str, limit: int = DEFAULT_LIST_LIMIT) -> list[AuthorizationRecord]:
        """Return a creator's used records that carry an IP asset id."""
        query = (
            select(MintAuthorization)
            .where(
                MintAuthorization.creator_address == creator_address,
                MintAuthorization.status == STATUS_USED,
                MintAuthorization.ip_id.is_not(None),
            )
            .order_by(MintAuthorization.used_at.desc(), MintAuthorization.nonce.desc())
            .limit(limit)
        )
        with store_guard("list_assets"), self._session_factory() as session:
            return [AuthorizationRecord.from_model(m) for m in session.execute(query).scalars()]

    def purge(self, older_than: int, now: int) -> int:
        """Delete unused records whose deadline is more than ``older_than`` seconds past.

        Used records are kept; they back the duplicate-content check.

        Returns:
            Number of deleted records.
        """
        cutoff = now - older_than
        with store_guard("purge"):
            with self._session_factory() as session, session.begin():
                deleted = session.execute(
                    delete(MintAuthorization).where(
                        MintAuthorization.status != STATUS_USED,
                        MintAuthorization.expires_at < cutoff,
                    )
                ).rowcount
        logger.info("Purged %s mint authorizations expired before %s", deleted, cutoff)
        return int(deleted or 0)
