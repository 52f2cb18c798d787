"""Loan disbursal, schedules, quotes and EMI collection"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from hpg_ledger.api.commands import execute_command
from hpg_ledger.api.dependencies import get_request_id, get_store
from hpg_ledger.api.v1.presenters import loan_response
from hpg_ledger.api.v1.schemas import (
    InstallmentSchema,
    LoanListResponse,
    LoanRequest,
    LoanResponse,
    RepaymentQuote,
    RepaymentRequest,
    RepaymentResponse,
    ScheduleResponse,
)
from hpg_ledger.domain.models import LoanTerms
from hpg_ledger.infrastructure.database.session import get_db
from hpg_ledger.ledger.store import LedgerStore
from hpg_ledger.utils.money import amount_in_words

router = APIRouter()


@router.get("/customers/{token}/loans", response_model=LoanListResponse)
def list_loans(
    token: str,
    active_only: bool = Query(False, description="Hide repaid loans"),
    store: LedgerStore = Depends(get_store),
):
    """Loans in disbursal order, each with its penalty state as of today"""
    store.get_customer(token)
    today = store.today()

    return LoanListResponse(
        token=token,
        outstanding_balance=store.outstanding_loan_balance(token),
        loans=[
            loan_response(loan, today, store.penalty_rate)
            for loan in store.loans(token, active_only=active_only)
        ],
    )


@router.post("/customers/{token}/loans", response_model=LoanResponse, status_code=201)
def disburse_loan(
    token: str,
    request_body: LoanRequest,
    request: Request,
    db: Session = Depends(get_db),
    store: LedgerStore = Depends(get_store),
):
    """
    Disburse a loan. Daily loans require the premium plan.

    total_repayment is fixed here: principal plus simple interest.
    """
    terms = LoanTerms(
        principal=request_body.principal,
        annual_rate_percent=request_body.annual_rate_percent,
        duration_months=request_body.duration_months,
        loan_type=request_body.loan_type,
        repayment_cycle=request_body.repayment_cycle,
        name=request_body.name,
    )
    loan = execute_command(
        "disburse_loan",
        token,
        get_request_id(request),
        db,
        store,
        lambda: store.disburse_loan(token, terms),
    )
    return loan_response(loan, store.today(), store.penalty_rate)


@router.get("/customers/{token}/loans/{loan_id}/schedule", response_model=ScheduleResponse)
def get_schedule(token: str, loan_id: str, store: LedgerStore = Depends(get_store)):
    """One slot per month with due date, amount and paid/overdue/upcoming status"""
    store.get_customer(token)
    installments = store.loan_schedule(token, loan_id)

    return ScheduleResponse(
        loan_id=loan_id,
        installments=[
            InstallmentSchema(number=i.number, due_date=i.due_date, amount=i.amount, status=i.status)
            for i in installments
        ],
    )


@router.get("/customers/{token}/loans/{loan_id}/quote", response_model=RepaymentQuote)
def quote_repayment(
    token: str,
    loan_id: str,
    installments: int = Query(..., description="Number of installments to collect"),
    store: LedgerStore = Depends(get_store),
):
    """Amount a repayment would collect right now, penalty included"""
    store.get_customer(token)
    amount = store.repayment_quote(token, loan_id, installments)
    penalty = store.penalty_info(token, loan_id)

    return RepaymentQuote(
        loan_id=loan_id,
        installments=installments,
        amount=amount,
        penalty_per_installment=penalty.monthly_penalty if penalty.overdue_count > 0 else 0,
        amount_in_words=amount_in_words(amount),
    )


@router.post("/customers/{token}/loans/{loan_id}/repayments", response_model=RepaymentResponse)
def collect_repayment(
    token: str,
    loan_id: str,
    request_body: RepaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
    store: LedgerStore = Depends(get_store),
):
    """Collect installments against a loan; repaid loans return 409"""
    amount = execute_command(
        "apply_repayment",
        token,
        get_request_id(request),
        db,
        store,
        lambda: store.apply_repayment(token, loan_id, request_body.installments),
    )

    return RepaymentResponse(
        amount_collected=amount,
        amount_in_words=amount_in_words(amount),
        loan=loan_response(store.get_loan(token, loan_id), store.today(), store.penalty_rate),
    )
