"""Dependency injection for FastAPI endpoints"""

from datetime import datetime
from typing import Callable

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from hpg_ledger.config import settings
from hpg_ledger.infrastructure.database.repositories import SnapshotRepository
from hpg_ledger.infrastructure.database.session import get_db
from hpg_ledger.infrastructure.seed import load_seed_customers
from hpg_ledger.ledger.store import LedgerStore, local_now


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_clock() -> Callable[[], datetime]:
    """Provide the clock that stamps log entries and dates loans"""
    return local_now


def get_repository(db: Session = Depends(get_db)) -> SnapshotRepository:
    return SnapshotRepository(db)


def get_store(
    repository: SnapshotRepository = Depends(get_repository),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> LedgerStore:
    """Rehydrate the ledger from the persisted snapshot, seeding customers on first use"""
    store = LedgerStore(
        repository.load(),
        clock=clock,
        grandfathered_year=settings.grandfathered_year,
        penalty_rate=settings.penalty_rate,
    )
    if settings.seed_file and not store.customers:
        store.import_customers(load_seed_customers(settings.seed_file))
    return store
