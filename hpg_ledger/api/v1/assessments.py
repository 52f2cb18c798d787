"""Yearly tax assessments: status and settlement"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from hpg_ledger.api.commands import execute_command
from hpg_ledger.api.dependencies import get_request_id, get_store
from hpg_ledger.api.v1.schemas import AssessmentRequest, AssessmentResponse, LineItemSchema
from hpg_ledger.domain.assessment import base_fee
from hpg_ledger.domain.models import LineItem
from hpg_ledger.infrastructure.database.session import get_db
from hpg_ledger.ledger.store import LedgerStore
from hpg_ledger.utils.money import amount_in_words

router = APIRouter()


def _assessment_response(store: LedgerStore, token: str, year: int) -> AssessmentResponse:
    customer = store.get_customer(token)
    record = store.payment_record(token, year)
    items = record.items if record is not None else []
    total = store.assessment_total(token, year)

    return AssessmentResponse(
        token=token,
        year=year,
        settled=store.is_settled(token, year),
        items=[LineItemSchema(label=i.label, amount=i.amount) for i in items],
        base_fee=base_fee(customer),
        total=total,
        total_in_words=amount_in_words(total),
    )


@router.get("/customers/{token}/assessments/{year}", response_model=AssessmentResponse)
def get_assessment(token: str, year: int, store: LedgerStore = Depends(get_store)):
    """Settlement state and recorded line items for a fiscal year"""
    return _assessment_response(store, token, year)


@router.post("/customers/{token}/assessments/{year}", response_model=AssessmentResponse, status_code=201)
def settle_assessment(
    token: str,
    year: int,
    request_body: AssessmentRequest,
    request: Request,
    db: Session = Depends(get_db),
    store: LedgerStore = Depends(get_store),
):
    """
    Settle a fiscal year with the selected line items.

    A year can be settled once; a second attempt returns 409.
    """
    items = [LineItem(label=i.label, amount=i.amount) for i in request_body.items]
    execute_command(
        "record_tax_payment",
        token,
        get_request_id(request),
        db,
        store,
        lambda: store.record_tax_payment(token, year, items),
    )
    return _assessment_response(store, token, year)
