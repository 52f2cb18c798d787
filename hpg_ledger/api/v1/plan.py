"""POST /v1/customers/{token}/plan - premium daily plan activation"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from hpg_ledger.api.commands import execute_command
from hpg_ledger.api.dependencies import get_request_id, get_store
from hpg_ledger.api.v1.schemas import PlanRequest, PlanResponse
from hpg_ledger.infrastructure.database.session import get_db
from hpg_ledger.ledger.store import LedgerStore
from hpg_ledger.utils.money import amount_in_words

router = APIRouter()


@router.post("/customers/{token}/plan", response_model=PlanResponse)
def activate_plan(
    token: str,
    request: Request,
    request_body: Optional[PlanRequest] = None,
    db: Session = Depends(get_db),
    store: LedgerStore = Depends(get_store),
):
    """
    Activate the premium daily plan, unlocking daily-cycle lending.

    Returns:
        422 when the tax category is not eligible, 409 when already active
    """
    fee = execute_command(
        "activate_plan",
        token,
        get_request_id(request),
        db,
        store,
        lambda: store.activate_plan(token, request_body.fee if request_body else None),
    )

    return PlanResponse(
        token=token,
        business_plus_active=True,
        fee_charged=fee,
        fee_in_words=amount_in_words(fee),
    )
