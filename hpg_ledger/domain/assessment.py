"""Tax assessment engine - yearly dues, settlement status and plan-upgrade fees"""

from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional

from hpg_ledger.domain.exceptions import NotEligible
from hpg_ledger.domain.models import Customer, LineItem, LoanRecord, PaymentRecord
from hpg_ledger.utils.money import parse_amount

# Legacy carve-out: this fiscal year counts as settled for every customer,
# with or without a payment record
GRANDFATHERED_YEAR = 2024


class UpgradeCategory(str, Enum):
    """Tax categories that qualify for the premium daily plan"""

    BSHPG = "BSHPG TAX"
    HNCG = "HNCG TAX"
    MCLBSG = "MCLBSG TAX"


UPGRADE_FEES: Dict[UpgradeCategory, int] = {
    UpgradeCategory.BSHPG: 49500,
    UpgradeCategory.HNCG: 69500,
    UpgradeCategory.MCLBSG: 78900,
}

TAX_PRESETS: List[LineItem] = [
    LineItem("Bhakti Medicine Insurance", 14500),
    LineItem("Pathan Charitable Trust", 34900),
    LineItem("Sakshi SKHM", 3200),
    LineItem("Nora Info Tech", 5700),
    LineItem("Swaminarayan Juna Mandir", 2100),
    LineItem("BAPS Swaminarayan", 3900),
    LineItem("GST", 6800),
    LineItem("SGST", 1800),
]


def upgrade_category(tax_type: str) -> Optional[UpgradeCategory]:
    try:
        return UpgradeCategory(tax_type)
    except ValueError:
        return None


def upgrade_fee(tax_type: str) -> int:
    """Premium plan fee for a tax category. Unrecognized categories raise NotEligible."""
    category = upgrade_category(tax_type)
    if category is None:
        raise NotEligible(f"Tax category {tax_type!r} is not eligible for the daily plan")
    return UPGRADE_FEES[category]


def base_fee(customer: Customer) -> int:
    return parse_amount(customer.price)


def items_total(items: Iterable[LineItem]) -> int:
    return sum(item.amount for item in items)


def assessment_total(customer: Customer, year: int, selected_items: Iterable[LineItem]) -> int:
    """
    Amount due for a fiscal year: base registration fee plus selected line items.

    The base fee is the same every year, so year only identifies the
    assessment being totalled.
    """
    return base_fee(customer) + items_total(selected_items)


def is_settled(
    payments: Mapping[int, PaymentRecord],
    year: int,
    grandfathered_year: int,
) -> bool:
    """A year is settled once it has a payment record; the grandfathered year always is"""
    return year == grandfathered_year or year in payments


def outstanding_loan_balance(loans: Iterable[LoanRecord]) -> int:
    """Sum of total_repayment - paid_amount over loans not yet repaid"""
    return sum(loan.balance for loan in loans)
