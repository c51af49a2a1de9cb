# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

PRIVATE_KEY_ONE = "0x" + "00" * 31 + "01"
PRIVATE_KEY_TWO = "0x" + "00" * 31 + "02"
ADDRESS_ONE = "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf"
ADDRESS_TWO = "0x2B5AD5c4795c026514f8317c7a215E218DcCD6cF"

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BACKEND_VERIFIER_PRIVATE_KEY", PRIVATE_KEY_ONE)

from orion_mint.api.v1.dependencies import get_clock, get_signer_dep  # noqa: E402
from orion_mint.db.session import Base, get_session_factory  # noqa: E402
from orion_mint.main import app as fastapi_app  # noqa: E402
from orion_mint.services.authorization import AuthorizationService  # noqa: E402
from orion_mint.services.nonce import NonceAllocator  # noqa: E402
from orion_mint.services.signing import Signer, SigningConvention, get_signer  # noqa: E402
from orion_mint.services.similarity import get_similarity_client  # noqa: E402
from orion_mint.services.token_store import AuthorizationRecord, TokenStore  # noqa: E402

TEST_DB_URL = "sqlite://"
START_TIME = 1_700_000_000
TTL = 900
CREATOR = ADDRESS_ONE.lower()


def make_record(nonce: int, content: int = 1, creator: str = CREATOR) -> AuthorizationRecord:
    """Build a pending record without going through the signer."""
    return AuthorizationRecord(
        nonce=nonce,
        creator_address=creator,
        content_hash=content.to_bytes(32, "big"),
        ip_metadata_uri=f"ipfs://ip-{content}",
        nft_metadata_uri=f"ipfs://nft-{content}",
        signature=bytes([nonce % 256]) * 64 + b"\x1b",
        signing_convention="personal",
        expires_at=START_TIME + TTL,
        status="pending",
        created_at=START_TIME,
    )


class FakeClock:
    """Settable unix clock."""

    def __init__(self, now: int = START_TIME) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def signer() -> Signer:
    return Signer(PRIVATE_KEY_ONE, SigningConvention.PERSONAL)


@pytest.fixture()
def store(session_factory: sessionmaker[Session]) -> TokenStore:
    return TokenStore(session_factory)


@pytest.fixture()
def allocator(session_factory: sessionmaker[Session]) -> NonceAllocator:
    return NonceAllocator(session_factory)


@pytest.fixture()
def service(
    store: TokenStore,
    allocator: NonceAllocator,
    signer: Signer,
    clock: FakeClock,
) -> AuthorizationService:
    return AuthorizationService(store, allocator, signer, ttl_seconds=900, clock=clock)


@pytest.fixture(autouse=True)
def reset_signer_cache() -> Iterator[None]:
    get_signer.cache_clear()
    yield
    get_signer.cache_clear()


@pytest.fixture()
def app(
    session_factory: sessionmaker[Session],
    signer: Signer,
    clock: FakeClock,
) -> Iterator[FastAPI]:
    overrides = {
        get_session_factory: lambda: session_factory,
        get_signer_dep: lambda: signer,
        get_clock: lambda: clock,
        get_similarity_client: lambda: None,
    }
    fastapi_app.dependency_overrides.update(overrides)
    try:
        yield fastapi_app
    finally:
        for dependency in overrides:
            fastapi_app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client
