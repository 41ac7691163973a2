"""Shared test fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.core.event_bus import EventBus
from src.core.ownership.cache import OwnershipCache
from src.core.ownership.models import AcquisitionMethod, OwnershipRecord
from src.db.database import get_db
from src.db.models import Base
from src.main import app
from src.services.ledger import MockLedgerOracle
from src.services.ownership_service import OwnershipService
from src.services.record_store import CosmeticRecordStore

WALLET_A = "Ak3mPq7RtV9wXyZ2bCdEfGhJkMnPqRsT"
WALLET_B = "Bw4nQr8SuW2xYz3cDeFgHjKmNpQrStUv"
WALLET_C = "Cx5pRs9TvX3yZa4dEfGhJkMnPqRsTuVw"

TEST_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = sessionmaker(bind=TEST_ENGINE, autocommit=False, autoflush=False)


def _override_get_db():
    db = TestSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = _override_get_db


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """sleep() stand-in that records requested delays"""

    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_record(
    instance_id: str,
    owner_id: str,
    token_ref: str | None = None,
    template_id: str = "hat_crown",
    serial_number: int | None = 1,
) -> OwnershipRecord:
    return OwnershipRecord(
        instance_id=instance_id,
        template_id=template_id,
        owner_id=owner_id,
        token_ref=token_ref,
        acquisition_method=AcquisitionMethod.GACHA,
        acquisition_price=100,
        name="Golden Crown",
        serial_number=serial_number,
    )


@pytest.fixture()
def session_factory():
    """Fresh in-memory schema per test"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    yield factory
    engine.dispose()


@pytest.fixture()
def store(session_factory) -> CosmeticRecordStore:
    return CosmeticRecordStore(session_factory)


@pytest.fixture()
def oracle() -> MockLedgerOracle:
    return MockLedgerOracle()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache(oracle, clock) -> OwnershipCache:
    return OwnershipCache(oracle, ttl_seconds=60.0, clock=clock)


@pytest.fixture()
def bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def service(store, cache, bus, sleeper) -> OwnershipService:
    return OwnershipService(store, cache, bus, sleep=sleeper)


@pytest.fixture()
def client() -> TestClient:
    """FastAPI TestClient wired to an in-memory SQLite database."""
    Base.metadata.create_all(TEST_ENGINE)
    return TestClient(app)


@pytest.fixture()
def db_session() -> Session:
    """Raw database session for direct DB assertions."""
    session = TestSession()
    try:
        yield session
    finally:
        session.close()
