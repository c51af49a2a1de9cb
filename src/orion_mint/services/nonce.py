"""Monotonic nonce allocation for mint authorizations."""

from __future__ import annotations

import logging

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from orion_mint.core.errors import StoreUnavailable
from orion_mint.db.session import store_guard
from orion_mint.models import MintAuthorization, NonceSequence
from orion_mint.models.nonce_sequence import MINT_NONCE_SEQUENCE

logger = logging.getLogger(__name__)

# Seeding can race with another process creating the same row.
_SEED_ATTEMPTS = 3


class NonceAllocator:
    """Hand out strictly increasing nonces backed by a sequence row.

    Each allocation is one atomic ``UPDATE ... SET value = value + 1 RETURNING
    value`` so concurrent callers in any number of processes never receive the
    same nonce. A nonce whose authorization is never persisted is an
    acceptable gap; nonces are never reused.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        sequence_name: str = MINT_NONCE_SEQUENCE,
    ) -> None:
        self._session_factory = session_factory
        self.sequence_name = sequence_name

    def next_nonce(self) -> int:
        """Return a nonce one higher than any issued before; the first is 1.

        Raises:
            StoreUnavailable: If the store cannot be reached. No nonce is
                reserved in that case.
        """
        for _ in range(_SEED_ATTEMPTS):
            with store_guard("nonce allocation"):
                with self._session_factory() as session, session.begin():
                    value = session.execute(
                        update(NonceSequence)
                        .where(NonceSequence.name == self.sequence_name)
                        .values(value=NonceSequence.value + 1)
                        .returning(NonceSequence.value)
                        .execution_options(synchronize_session=False)
                    ).scalar_one_or_none()
            if value is not None:
                return int(value)
            self._seed()
        raise StoreUnavailable("Nonce sequence could not be initialised")

    def resync(self) -> int:
        """Raise the sequence to at least the highest persisted nonce.

        Returns:
            The sequence value after the resync.
        """
        with store_guard("nonce resync"):
            with self._session_factory() as session, session.begin():
                highest = session.execute(
                    select(func.coalesce(func.max(MintAuthorization.nonce), 0))
                ).scalar_one()
                session.execute(
                    update(NonceSequence)
                    .where(
                        NonceSequence.name == self.sequence_name,
                        NonceSequence.value < highest,
                    )
                    .values(value=highest)
                )
                value = session.execute(
                    select(NonceSequence.value).where(NonceSequence.name == self.sequence_name)
                ).scalar_one_or_none()
        if value is None:
            return self._seed()
        logger.warning("Nonce sequence %s resynced to %s", self.sequence_name, value)
        return int(value)

    def current(self) -> int:
        """Return the highest nonce handed out so far (0 before the first)."""
        with store_guard("nonce read"), self._session_factory() as session:
            value = session.execute(
                select(NonceSequence.value).where(NonceSequence.name == self.sequence_name)
            ).scalar_one_or_none()
        return int(value or 0)

    def _seed(self) -> int:
        """Create the sequence row from the highest persisted nonce."""
        try:
            with store_guard("nonce seeding"):
                with self._session_factory() as session, session.begin():
                    highest = session.execute(
                        select(func.coalesce(func.max(MintAuthorization.nonce), 0))
                    ).scalar_one()
                    session.execute(
                        insert(NonceSequence).values(name=self.sequence_name, value=highest)
                    )
        except IntegrityError:
            # Another allocator created the row first.
            logger.debug("Nonce sequence %s already seeded", self.sequence_name)
            return self.current()
        logger.info("Seeded nonce sequence %s at %s", self.sequence_name, highest)
        return int(highest)
