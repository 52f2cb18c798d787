"""Ledger store - owns customers, assessments, loans and the transaction log"""

import copy
import uuid
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from hpg_ledger.domain import assessment, loans as loan_engine
from hpg_ledger.domain.exceptions import (
    AlreadyActive,
    CustomerNotFound,
    DuplicateAssessment,
    LoanNotFound,
    PlanNotActive,
)
from hpg_ledger.domain.models import (
    Customer,
    Installment,
    LedgerSnapshot,
    LedgerStats,
    LineItem,
    LoanRecord,
    LoanTerms,
    LoanType,
    LogType,
    PaymentRecord,
    PenaltyInfo,
    TransactionLog,
)
from hpg_ledger.domain.queries import CustomerFilter, filter_customers, ledger_stats
from hpg_ledger.domain.reconciliation import reconcile
from hpg_ledger.domain.scoring import calculate_trust_score


def new_id() -> str:
    return str(uuid.uuid4())


def local_now() -> datetime:
    return datetime.now().astimezone()


class LedgerStore:
    """
    In-memory ledger built from a persisted snapshot.

    Commands validate and compute everything up front, then commit the
    aggregate change and its log entries together, so a failed command leaves
    the store untouched. The store never persists itself: callers take
    snapshot() after a command and write it out.
    """

    def __init__(
        self,
        snapshot: Optional[LedgerSnapshot] = None,
        clock: Callable[[], datetime] = local_now,
        grandfathered_year: int = assessment.GRANDFATHERED_YEAR,
        penalty_rate: float = loan_engine.PENALTY_RATE,
        id_factory: Callable[[], str] = new_id,
    ):
        snapshot = copy.deepcopy(snapshot) if snapshot is not None else LedgerSnapshot()
        self._customers: List[Customer] = snapshot.customers
        self._payments: Dict[str, Dict[int, PaymentRecord]] = snapshot.payments
        self._loans: Dict[str, List[LoanRecord]] = snapshot.loans
        self._logs: Dict[str, List[TransactionLog]] = snapshot.logs
        self.clock = clock
        self.grandfathered_year = grandfathered_year
        self.penalty_rate = penalty_rate
        self.id_factory = id_factory

    def snapshot(self) -> LedgerSnapshot:
        """Detached copy of all four collections, ready to persist"""
        return LedgerSnapshot(
            customers=copy.deepcopy(self._customers),
            payments=copy.deepcopy(self._payments),
            loans=copy.deepcopy(self._loans),
            logs=copy.deepcopy(self._logs),
        )

    def today(self) -> date:
        return self.clock().date()

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    @property
    def customers(self) -> List[Customer]:
        return copy.deepcopy(self._customers)

    def get_customer(self, token: str) -> Customer:
        return copy.deepcopy(self._customers[self._customer_index(token)])

    def import_customers(self, customers: Iterable[Customer]) -> int:
        """Register customers whose token is not yet known. Returns how many were added."""
        known = {c.token for c in self._customers}
        added = []
        for customer in customers:
            if customer.token not in known:
                known.add(customer.token)
                added.append(customer)
        self._customers.extend(added)
        return len(added)

    def _customer_index(self, token: str) -> int:
        for index, customer in enumerate(self._customers):
            if customer.token == token:
                return index
        raise CustomerNotFound(f"No customer with token {token}")

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def record_tax_payment(self, token: str, year: int, items: Iterable[LineItem]) -> PaymentRecord:
        """Settle a fiscal year. Each (token, year) can be settled only once."""
        self._customer_index(token)
        if year in self._payments.get(token, {}):
            raise DuplicateAssessment(f"FY {year} is already settled for {token}")

        record = PaymentRecord(year=year, items=list(items))
        entry = self._new_entry(
            LogType.TAX_PAYMENT,
            f"Tax Assessment FY {year} Completed",
            record.items_total,
            reference=str(year),
        )

        self._payments.setdefault(token, {})[year] = record
        self._append_log(token, entry)
        return copy.deepcopy(record)

    def disburse_loan(self, token: str, terms: LoanTerms) -> LoanRecord:
        """Create a loan from terms and credit the principal"""
        customer = self.get_customer(token)
        if terms.loan_type == LoanType.DAILY and not customer.business_plus_active:
            raise PlanNotActive(f"{token} must activate the daily plan before daily lending")

        loan = loan_engine.create_loan(terms, self.id_factory(), self.today())
        entry = self._new_entry(
            LogType.LOAN_CREDIT,
            f"Loan Disbursed: {loan.name}",
            loan.principal,
            reference=loan.id,
        )

        self._loans.setdefault(token, []).append(loan)
        self._append_log(token, entry)
        return copy.deepcopy(loan)

    def apply_repayment(self, token: str, loan_id: str, installment_count: int) -> int:
        """Collect the next installment_count installments. Returns the amount collected."""
        self._customer_index(token)
        index, loan = self._find_loan(token, loan_id)

        updated, amount = loan_engine.apply_repayment(
            loan, installment_count, self.today(), self.penalty_rate
        )
        entry = self._new_entry(
            LogType.EMI_DEBIT,
            f"EMI Recovery: {installment_count} Installments Paid",
            amount,
            reference=loan.id,
        )

        self._loans[token][index] = updated
        self._append_log(token, entry)
        return amount

    def activate_plan(self, token: str, fee: Optional[int] = None) -> int:
        """
        Move an eligible customer onto the premium daily plan.

        The fee defaults to the category's entry in the upgrade table and is
        logged as a tax payment ahead of the activation entry. Returns the fee
        charged.
        """
        index = self._customer_index(token)
        customer = self._customers[index]
        if customer.business_plus_active:
            raise AlreadyActive(f"{token} is already on the daily plan")
        table_fee = assessment.upgrade_fee(customer.tax_type)
        charged = table_fee if fee is None else fee

        fee_entry = self._new_entry(
            LogType.TAX_PAYMENT,
            f"Daily Mode Activation Fee ({customer.tax_type})",
            charged,
        )
        mode_entry = self._new_entry(LogType.MODE_ACTIVATE, "Premium Daily Mode Activated", 0)

        self._customers[index] = replace(customer, business_plus_active=True)
        self._append_log(token, fee_entry)
        self._append_log(token, mode_entry)
        return charged

    def _find_loan(self, token: str, loan_id: str) -> Tuple[int, LoanRecord]:
        for index, loan in enumerate(self._loans.get(token, [])):
            if loan.id == loan_id:
                return index, loan
        raise LoanNotFound(f"No loan {loan_id} for {token}")

    def _new_entry(
        self, log_type: LogType, description: str, amount: int, reference: Optional[str] = None
    ) -> TransactionLog:
        return TransactionLog(
            id=self.id_factory(),
            timestamp=self.clock(),
            type=log_type,
            description=description,
            amount=amount,
            reference=reference,
        )

    def _append_log(self, token: str, entry: TransactionLog) -> None:
        # Newest first
        self._logs.setdefault(token, []).insert(0, entry)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_settled(self, token: str, year: int) -> bool:
        return assessment.is_settled(self._payments.get(token, {}), year, self.grandfathered_year)

    def payment_record(self, token: str, year: int) -> Optional[PaymentRecord]:
        record = self._payments.get(token, {}).get(year)
        return copy.deepcopy(record) if record is not None else None

    def assessment_total(
        self, token: str, year: int, selected_items: Optional[Iterable[LineItem]] = None
    ) -> int:
        """Total for the given items, or for the items recorded for that year when omitted"""
        customer = self.get_customer(token)
        if selected_items is None:
            record = self._payments.get(token, {}).get(year)
            selected_items = record.items if record is not None else []
        return assessment.assessment_total(customer, year, selected_items)

    def loans(self, token: str, loan_type: Optional[LoanType] = None, active_only: bool = False) -> List[LoanRecord]:
        result = self._loans.get(token, [])
        if loan_type is not None:
            result = [loan for loan in result if loan.loan_type == loan_type]
        if active_only:
            result = [loan for loan in result if not loan.is_repaid]
        return copy.deepcopy(result)

    def get_loan(self, token: str, loan_id: str) -> LoanRecord:
        _, loan = self._find_loan(token, loan_id)
        return copy.deepcopy(loan)

    def outstanding_loan_balance(self, token: str) -> int:
        return assessment.outstanding_loan_balance(self._loans.get(token, []))

    def trust_score(self, token: str) -> int:
        return calculate_trust_score(self._loans.get(token, []))

    def penalty_info(self, token: str, loan_id: str) -> PenaltyInfo:
        _, loan = self._find_loan(token, loan_id)
        return loan_engine.penalty_info(loan, self.today(), self.penalty_rate)

    def repayment_quote(self, token: str, loan_id: str, installment_count: int) -> int:
        """Amount apply_repayment would collect, without collecting it"""
        _, loan = self._find_loan(token, loan_id)
        return loan_engine.repayment_amount(loan, installment_count, self.today(), self.penalty_rate)

    def loan_schedule(self, token: str, loan_id: str) -> List[Installment]:
        _, loan = self._find_loan(token, loan_id)
        return loan_engine.loan_schedule(loan, self.today())

    def history(self, token: str) -> List[TransactionLog]:
        return list(self._logs.get(token, []))

    def filter_customers(
        self, year: int, status: CustomerFilter = CustomerFilter.ALL, search: str = ""
    ) -> List[Customer]:
        return filter_customers(
            self._customers,
            status,
            search,
            is_settled=lambda token: self.is_settled(token, year),
            loan_balance=self.outstanding_loan_balance,
        )

    def stats(self, year: int) -> LedgerStats:
        return ledger_stats(
            self._customers,
            is_settled=lambda token: self.is_settled(token, year),
            loan_balance=self.outstanding_loan_balance,
            principal_disbursed=lambda token: sum(loan.principal for loan in self._loans.get(token, [])),
            tax_collected=lambda token: self._payments.get(token, {}).get(year, PaymentRecord(year)).items_total,
        )

    def reconcile(self, token: str) -> List[str]:
        self._customer_index(token)
        return reconcile(
            self._payments.get(token, {}),
            self._loans.get(token, []),
            self._logs.get(token, []),
        )
