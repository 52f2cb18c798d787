"""Query/projection layer - customer filtering and dashboard totals"""

from enum import Enum
from typing import Callable, List, Sequence

from hpg_ledger.domain.models import Customer, LedgerStats


class CustomerFilter(str, Enum):
    ALL = "all"
    SETTLED = "paid"
    UNSETTLED = "pending"
    OUTSTANDING_LOAN = "loan"


def matches_search(customer: Customer, search: str) -> bool:
    """Case-insensitive substring match on name or token. Empty search matches all."""
    if not search:
        return True
    needle = search.lower()
    return needle in customer.token.lower() or needle in customer.name.lower()


def filter_customers(
    customers: Sequence[Customer],
    status: CustomerFilter,
    search: str,
    is_settled: Callable[[str], bool],
    loan_balance: Callable[[str], int],
) -> List[Customer]:
    """
    Filter by status, then by search term, keeping the input order.

    is_settled and loan_balance answer for a customer token in the year and
    ledger state being displayed. Filtering an already-filtered list with the
    same arguments returns it unchanged.
    """
    if status == CustomerFilter.SETTLED:
        result = [c for c in customers if is_settled(c.token)]
    elif status == CustomerFilter.UNSETTLED:
        result = [c for c in customers if not is_settled(c.token)]
    elif status == CustomerFilter.OUTSTANDING_LOAN:
        result = [c for c in customers if loan_balance(c.token) > 0]
    else:
        result = list(customers)

    return [c for c in result if matches_search(c, search)]


def ledger_stats(
    customers: Sequence[Customer],
    is_settled: Callable[[str], bool],
    loan_balance: Callable[[str], int],
    principal_disbursed: Callable[[str], int],
    tax_collected: Callable[[str], int],
) -> LedgerStats:
    """Dashboard totals over all customers for the year the callables answer for"""
    settled_count = sum(1 for c in customers if is_settled(c.token))

    return LedgerStats(
        total_customers=len(customers),
        settled_count=settled_count,
        pending_count=len(customers) - settled_count,
        active_loan_customers=sum(1 for c in customers if loan_balance(c.token) > 0),
        total_principal_disbursed=sum(principal_disbursed(c.token) for c in customers),
        tax_collected=sum(tax_collected(c.token) for c in customers),
    )
