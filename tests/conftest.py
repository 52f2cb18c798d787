"""Pytest fixtures for testing"""

import itertools
import pytest
from datetime import datetime, timedelta, timezone
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from hpg_ledger.api.dependencies import get_clock
from hpg_ledger.api.main import create_app
from hpg_ledger.domain.models import Customer, LedgerSnapshot
from hpg_ledger.infrastructure.database.models import Base
from hpg_ledger.infrastructure.database.repositories import SnapshotRepository
from hpg_ledger.infrastructure.database.session import get_db
from hpg_ledger.ledger.store import LedgerStore
from hpg_ledger.utils.date_utils import add_months


# Test database
TEST_DATABASE_URL = "sqlite:///./test_ledger.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FrozenClock:
    """Callable clock that only moves when a test moves it"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance_months(self, months: int) -> None:
        moved = add_months(self.now.date(), months)
        self.now = self.now.replace(year=moved.year, month=moved.month, day=moved.day)

    def advance_days(self, days: int) -> None:
        self.now = self.now + timedelta(days=days)


@pytest.fixture
def clock() -> FrozenClock:
    """Clock fixed at 19 April 2026, 10:00 UTC"""
    return FrozenClock(datetime(2026, 4, 19, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def customers() -> list[Customer]:
    """Three registered customers: two upgrade-eligible categories and one general"""
    return [
        Customer(
            token="HPG1001",
            name="Ramesh Patel",
            tax_type="BSHPG TAX",
            district="Ahmedabad",
            price="₹ 12,500",
            brokerage="₹ 500",
        ),
        Customer(
            token="HPG1002",
            name="Sunita Shah",
            tax_type="HNCG TAX",
            district="Surat",
            price="₹ 8,000",
        ),
        Customer(
            token="HPG2001",
            name="Arjun Mehta",
            tax_type="GENERAL TAX",
            district="Rajkot",
            price="5,000/-",
        ),
    ]


@pytest.fixture
def store(customers: list[Customer], clock: FrozenClock) -> LedgerStore:
    """Ledger seeded with the sample customers and sequential ids"""
    counter = itertools.count(1)
    return LedgerStore(
        LedgerSnapshot(customers=customers),
        clock=clock,
        grandfathered_year=2024,
        id_factory=lambda: f"ID{next(counter):04d}",
    )


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session, customers: list[Customer], clock: FrozenClock) -> TestClient:
    """Create FastAPI test client with test database, seeded customers and frozen clock"""
    SnapshotRepository(db).save(LedgerSnapshot(customers=customers))
    db.commit()

    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    return TestClient(app)
