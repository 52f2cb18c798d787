"""Transaction history and log reconciliation"""

from fastapi import APIRouter, Depends

from hpg_ledger.api.dependencies import get_store
from hpg_ledger.api.v1.schemas import HistoryItem, HistoryResponse, ReconciliationResponse
from hpg_ledger.ledger.store import LedgerStore
from hpg_ledger.utils.money import amount_in_words

router = APIRouter()


@router.get("/customers/{token}/history", response_model=HistoryResponse)
def get_history(token: str, store: LedgerStore = Depends(get_store)):
    """
    Retrieve a customer's transaction log.

    Returns:
        Entries newest first, amounts also spelled out for vouchers
    """
    store.get_customer(token)

    entries = [
        HistoryItem(
            id=entry.id,
            timestamp=entry.timestamp,
            type=entry.type,
            description=entry.description,
            amount=entry.amount,
            amount_in_words=amount_in_words(entry.amount),
            reference=entry.reference,
        )
        for entry in store.history(token)
    ]

    return HistoryResponse(token=token, entries=entries)


@router.get("/customers/{token}/reconciliation", response_model=ReconciliationResponse)
def get_reconciliation(token: str, store: LedgerStore = Depends(get_store)):
    """Replay the log against loans and assessments and list any mismatch"""
    issues = store.reconcile(token)
    return ReconciliationResponse(token=token, balanced=not issues, issues=issues)
