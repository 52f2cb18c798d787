"""Run a ledger command and persist the resulting snapshot in one transaction"""

import logging
import time
from typing import Callable, TypeVar

from sqlalchemy.orm import Session

from hpg_ledger.domain.exceptions import LedgerError
from hpg_ledger.infrastructure.database.repositories import SnapshotRepository
from hpg_ledger.infrastructure.observability.logging import log_command, log_rejection
from hpg_ledger.infrastructure.observability.metrics import record_amount, record_command
from hpg_ledger.ledger.store import LedgerStore

T = TypeVar("T")


def execute_command(
    command: str,
    token: str,
    request_id: str,
    db: Session,
    store: LedgerStore,
    action: Callable[[], T],
) -> T:
    """
    Apply action to the store, then write all four collections back.

    Flow:
    1. Run the command against the in-memory store
    2. Stage the new snapshot and commit it as one transaction
    3. Record metrics and logs for the new log entries

    LedgerError propagates to the caller after a rollback; the API maps it
    to an HTTP status.
    """
    start_time = time.time()
    entries_before = len(store.history(token))

    try:
        result = action()
        SnapshotRepository(db).save(store.snapshot())
        db.commit()

    except LedgerError as e:
        db.rollback()
        record_command(command, committed=False)
        log_rejection(request_id, token, command, e)
        raise

    except Exception as e:
        db.rollback()
        logging.error(f"Ledger command failed: {e}", extra={"request_id": request_id, "command": command})
        raise

    history = store.history(token)
    new_entries = history[: len(history) - entries_before]
    for entry in new_entries:
        record_amount(entry.type, entry.amount)

    duration_ms = (time.time() - start_time) * 1000
    record_command(command, committed=True)
    log_command(request_id, token, command, sum(e.amount for e in new_entries), duration_ms)

    return result
