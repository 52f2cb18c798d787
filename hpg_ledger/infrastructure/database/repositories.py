"""Data access layer for the ledger snapshot"""

from typing import Dict, Optional
from sqlalchemy.orm import Session
from hpg_ledger.domain.exceptions import CorruptLedgerData
from hpg_ledger.domain.models import LedgerSnapshot
from hpg_ledger.infrastructure.database.models import LedgerEntry
from hpg_ledger.infrastructure.database.serialization import (
    StorageKeys,
    decode_snapshot,
    encode_snapshot,
    malformed_keys,
)


class SnapshotRepository:
    """Loads and stores all four ledger collections as one unit"""

    def __init__(self, db: Session):
        self.db = db

    def load_raw(self) -> Dict[str, Optional[str]]:
        rows = self.db.query(LedgerEntry).filter(LedgerEntry.key.in_(StorageKeys.ALL)).all()
        return {row.key: row.value for row in rows}

    def load(self) -> LedgerSnapshot:
        """Rehydrate the snapshot; any malformed collection loads the whole snapshot empty"""
        return decode_snapshot(self.load_raw())

    def save(self, snapshot: LedgerSnapshot) -> None:
        """
        Stage every collection in the current transaction.

        Nothing is visible until the caller commits, so either all four keys
        change or none do. Malformed stored data is never overwritten: it
        raises CorruptLedgerData and leaves the stored rows as they are.
        """
        malformed = malformed_keys(self.load_raw())
        if malformed:
            raise CorruptLedgerData(f"Refusing to overwrite malformed ledger data under {', '.join(malformed)}")

        for key, value in encode_snapshot(snapshot).items():
            self.db.merge(LedgerEntry(key=key, value=value))
        self.db.flush()
