"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from datetime import datetime, timedelta, timezone
from typing import Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from shatranj.auth.issuer import SessionTokenIssuer
from shatranj.auth.store import SessionStore
from shatranj.auth.token import TokenCodec
from shatranj.auth.verifier import SignatureVerifier
from shatranj.auth.wallet import LocalAccountWallet
from shatranj.core.models import SessionRecord
from shatranj.db.schema import Base

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

SECRET_KEY = "test-secret-key"
VALIDITY = timedelta(hours=24)
START_TIME = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)

# Deterministic keys so failures are reproducible
WHITE_KEY = "0x" + "11" * 32
BLACK_KEY = "0x" + "22" * 32
STRANGER_KEY = "0x" + "33" * 32


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = START_TIME) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class MockRecordRepository:
    """Mock the SessionRecordRepository using a dictionary of records."""

    def __init__(self) -> None:
        self._records: dict[str, SessionRecord] = {}

    def get_record(self, key: str) -> SessionRecord | None:
        return self._records.get(key)

    def put_record(self, record: SessionRecord) -> SessionRecord:
        self._records[record.key] = record
        return record

    def delete_record(self, key: str) -> SessionRecord | None:
        return self._records.pop(key, None)

    def keys(self) -> set[str]:
        return set(self._records)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        Base.metadata.drop_all(bind=engine)
        db.close()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(SECRET_KEY)


@pytest.fixture
def verifier() -> SignatureVerifier:
    return SignatureVerifier()


@pytest.fixture
def records() -> MockRecordRepository:
    return MockRecordRepository()


@pytest.fixture
def store(
    records: MockRecordRepository,
    codec: TokenCodec,
    verifier: SignatureVerifier,
    clock: FrozenClock,
) -> SessionStore:
    return SessionStore(records, codec, verifier, validity=VALIDITY, clock=clock)


@pytest.fixture
def issuer(
    codec: TokenCodec, verifier: SignatureVerifier, clock: FrozenClock
) -> SessionTokenIssuer:
    return SessionTokenIssuer(codec, verifier, validity=VALIDITY, clock=clock)


@pytest.fixture
def white_wallet() -> LocalAccountWallet:
    return LocalAccountWallet.from_key(WHITE_KEY)


@pytest.fixture
def black_wallet() -> LocalAccountWallet:
    return LocalAccountWallet.from_key(BLACK_KEY)


@pytest.fixture
def stranger_wallet() -> LocalAccountWallet:
    return LocalAccountWallet.from_key(STRANGER_KEY)
