"""Replay a customer's transaction log and compare it with the derived aggregates"""

from collections import defaultdict
from typing import Dict, List, Mapping, Sequence

from hpg_ledger.domain.models import LogType, LoanRecord, PaymentRecord, TransactionLog


def reconcile(
    payments: Mapping[int, PaymentRecord],
    loans: Sequence[LoanRecord],
    logs: Sequence[TransactionLog],
) -> List[str]:
    """
    Rebuild loan and assessment totals from log entries and report mismatches.

    Checks that every loan has exactly one disbursal entry for its principal,
    that EMI debits sum to the loan's paid amount, that each settled year's
    tax entries sum to its line items, and that no entry points at an unknown
    loan. An empty list means the ledger reconciles.
    """
    credits: Dict[str, List[int]] = defaultdict(list)
    debits: Dict[str, int] = defaultdict(int)
    tax_paid: Dict[str, int] = defaultdict(int)

    for entry in logs:
        if entry.reference is None:
            continue
        if entry.type == LogType.LOAN_CREDIT:
            credits[entry.reference].append(entry.amount)
        elif entry.type == LogType.EMI_DEBIT:
            debits[entry.reference] += entry.amount
        elif entry.type == LogType.TAX_PAYMENT:
            tax_paid[entry.reference] += entry.amount

    issues = []
    loan_ids = set()
    for loan in loans:
        loan_ids.add(loan.id)
        if credits.get(loan.id) != [loan.principal]:
            issues.append(
                f"Loan {loan.id}: disbursal entries {credits.get(loan.id, [])} do not match principal {loan.principal}"
            )
        if debits.get(loan.id, 0) != loan.paid_amount:
            issues.append(
                f"Loan {loan.id}: EMI debits {debits.get(loan.id, 0)} do not match paid amount {loan.paid_amount}"
            )

    for ref in sorted((set(credits) | set(debits)) - loan_ids):
        issues.append(f"Log entries reference unknown loan {ref}")

    for year, record in sorted(payments.items()):
        logged = tax_paid.get(str(year), 0)
        if logged != record.items_total:
            issues.append(f"FY {year}: tax entries {logged} do not match assessment items {record.items_total}")

    return issues
