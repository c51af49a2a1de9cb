"""Tests for the database-backed nonce allocator."""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from orion_mint.core.errors import StoreUnavailable
from orion_mint.db.session import Base, build_engine
from orion_mint.models import MintAuthorization
from orion_mint.services.nonce import NonceAllocator

THREADS = 8
PER_THREAD = 5


def _insert_authorization(session_factory, nonce: int) -> None:
    with session_factory() as session, session.begin():
        session.add(
            MintAuthorization(
                nonce=nonce,
                creator_address="0x" + "11" * 20,
                content_hash=nonce.to_bytes(32, "big"),
                ip_metadata_uri="ipfs://ip",
                nft_metadata_uri="ipfs://nft",
                signature=b"\x00" * 65,
                signing_convention="personal",
                expires_at=1_700_000_900,
                status="pending",
                created_at=1_700_000_000,
            )
        )


def test_first_nonce_is_one_and_increasing(allocator: NonceAllocator) -> None:
    assert allocator.current() == 0
    values = [allocator.next_nonce() for _ in range(5)]
    assert values == [1, 2, 3, 4, 5]
    assert allocator.current() == 5


def test_sequence_is_seeded_from_persisted_nonces(session_factory) -> None:
    _insert_authorization(session_factory, 41)
    allocator = NonceAllocator(session_factory)
    assert allocator.next_nonce() == 42


def test_resync_raises_sequence_to_highest_nonce(session_factory) -> None:
    allocator = NonceAllocator(session_factory)
    assert allocator.next_nonce() == 1
    _insert_authorization(session_factory, 10)

    assert allocator.resync() == 10
    assert allocator.next_nonce() == 11


def test_resync_never_lowers_the_sequence(session_factory) -> None:
    allocator = NonceAllocator(session_factory)
    for _ in range(3):
        allocator.next_nonce()
    assert allocator.resync() == 3
    assert allocator.next_nonce() == 4


def test_store_failure_raises_store_unavailable(allocator: NonceAllocator, mocker) -> None:
    mocker.patch.object(
        allocator,
        "_session_factory",
        side_effect=OperationalError("UPDATE", {}, Exception("database is locked")),
    )
    with pytest.raises(StoreUnavailable):
        allocator.next_nonce()


def test_concurrent_allocations_are_distinct_without_gaps(tmp_path: Path) -> None:
    engine = build_engine(f"sqlite:///{tmp_path / 'nonce.db'}", timeout_seconds=30)
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    allocator = NonceAllocator(factory)
    assert allocator.next_nonce() == 1

    def allocate(_: int) -> list[int]:
        return [allocator.next_nonce() for _ in range(PER_THREAD)]

    try:
        with ThreadPoolExecutor(max_workers=THREADS) as pool:
            batches = list(pool.map(allocate, range(THREADS)))
    finally:
        engine.dispose()

    values = [value for batch in batches for value in batch]
    assert len(set(values)) == len(values)
    assert sorted(values) == list(range(2, 2 + THREADS * PER_THREAD))
    for batch in batches:
        assert batch == sorted(batch)
