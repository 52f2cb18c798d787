"""Customer listing, detail, dashboard stats and tax presets"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from hpg_ledger.api.dependencies import get_store
from hpg_ledger.api.v1.schemas import (
    CustomerDetail,
    CustomerListResponse,
    CustomerRow,
    LineItemSchema,
    StatsResponse,
    TaxPresetsResponse,
)
from hpg_ledger.config import settings
from hpg_ledger.domain.assessment import TAX_PRESETS, base_fee, upgrade_category, upgrade_fee
from hpg_ledger.domain.queries import CustomerFilter
from hpg_ledger.domain.scoring import score_band
from hpg_ledger.ledger.store import LedgerStore

router = APIRouter()


@router.get("/customers", response_model=CustomerListResponse)
def list_customers(
    year: Optional[int] = Query(None, description="Fiscal year, defaults to the current one"),
    status: CustomerFilter = Query(CustomerFilter.ALL),
    search: str = Query("", description="Case-insensitive match on name or token"),
    store: LedgerStore = Depends(get_store),
):
    """
    Filter customers by settlement/loan status for a year, then by search term.

    Rows keep the registration order.
    """
    year = year if year is not None else settings.default_fiscal_year
    rows = []
    for customer in store.filter_customers(year, status, search):
        score = store.trust_score(customer.token)
        rows.append(
            CustomerRow(
                token=customer.token,
                name=customer.name,
                tax_type=customer.tax_type,
                district=customer.district,
                settled=store.is_settled(customer.token, year),
                loan_balance=store.outstanding_loan_balance(customer.token),
                trust_score=score,
                score_band=score_band(score),
            )
        )

    return CustomerListResponse(year=year, status=status, search=search, customers=rows)


@router.get("/customers/{token}", response_model=CustomerDetail)
def get_customer(token: str, store: LedgerStore = Depends(get_store)):
    customer = store.get_customer(token)
    score = store.trust_score(token)

    return CustomerDetail.build(
        customer,
        base_fee=base_fee(customer),
        upgrade_fee=upgrade_fee(customer.tax_type) if upgrade_category(customer.tax_type) else None,
        trust_score=score,
        score_band=score_band(score),
        loan_balance=store.outstanding_loan_balance(token),
    )


@router.get("/stats", response_model=StatsResponse)
def get_stats(
    year: Optional[int] = Query(None),
    store: LedgerStore = Depends(get_store),
):
    """Dashboard totals for a fiscal year"""
    year = year if year is not None else settings.default_fiscal_year
    stats = store.stats(year)

    return StatsResponse(
        year=year,
        total_customers=stats.total_customers,
        settled_count=stats.settled_count,
        pending_count=stats.pending_count,
        active_loan_customers=stats.active_loan_customers,
        total_principal_disbursed=stats.total_principal_disbursed,
        tax_collected=stats.tax_collected,
    )


@router.get("/tax-presets", response_model=TaxPresetsResponse)
def get_tax_presets():
    """Line items offered when billing an assessment"""
    return TaxPresetsResponse(items=[LineItemSchema(label=i.label, amount=i.amount) for i in TAX_PRESETS])
