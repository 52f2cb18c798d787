"""Domain models - pure Python dataclasses representing ledger entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional


class LogType(str, Enum):
    """Kinds of entries in a customer's transaction log"""

    TAX_PAYMENT = "TAX_PAYMENT"
    LOAN_CREDIT = "LOAN_CREDIT"
    EMI_DEBIT = "EMI_DEBIT"
    MODE_ACTIVATE = "MODE_ACTIVATE"


class LoanType(str, Enum):
    REGULAR = "regular"
    DAILY = "daily"


class RepaymentCycle(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class InstallmentStatus(str, Enum):
    PAID = "paid"
    OVERDUE = "overdue"
    UPCOMING = "upcoming"


@dataclass
class Customer:
    """Registered tax payer, identified by an immutable token"""

    token: str
    name: str
    tax_type: str
    district: str
    price: str  # formatted base fee, e.g. "₹ 12,500"
    brokerage: str = ""
    business_plus_active: bool = False


@dataclass(frozen=True)
class LineItem:
    """Single billed line on a tax assessment"""

    label: str
    amount: int


@dataclass
class PaymentRecord:
    """Settled assessment for one fiscal year"""

    year: int
    items: List[LineItem] = field(default_factory=list)

    @property
    def items_total(self) -> int:
        return sum(item.amount for item in self.items)


@dataclass(frozen=True)
class LoanTerms:
    """Inputs to a loan disbursal"""

    principal: int
    annual_rate_percent: float
    duration_months: int
    loan_type: LoanType = LoanType.REGULAR
    repayment_cycle: RepaymentCycle = RepaymentCycle.MONTHLY
    name: Optional[str] = None


@dataclass
class LoanRecord:
    """Disbursed loan. total_repayment is fixed at disbursal."""

    id: str
    name: str
    principal: int
    annual_rate_percent: float
    duration_months: int
    total_repayment: int
    disbursal_date: date
    loan_type: LoanType = LoanType.REGULAR
    repayment_cycle: RepaymentCycle = RepaymentCycle.MONTHLY
    paid_months: int = 0
    paid_amount: int = 0

    @property
    def is_repaid(self) -> bool:
        return self.paid_amount >= self.total_repayment

    @property
    def remaining_months(self) -> int:
        return self.duration_months - self.paid_months

    @property
    def balance(self) -> int:
        return 0 if self.is_repaid else self.total_repayment - self.paid_amount


@dataclass(frozen=True)
class TransactionLog:
    """Immutable audit entry"""

    id: str
    timestamp: datetime
    type: LogType
    description: str
    amount: int
    reference: Optional[str] = None  # fiscal year or loan id


@dataclass(frozen=True)
class PenaltyInfo:
    """Overdue state of a loan as of a given day"""

    overdue_count: int
    monthly_penalty: int
    total_penalty: int


@dataclass(frozen=True)
class Installment:
    """Single slot in a loan's EMI schedule"""

    number: int
    due_date: date
    amount: int
    status: InstallmentStatus


@dataclass
class LedgerSnapshot:
    """The four persisted collections, owned as one transactional unit"""

    customers: List[Customer] = field(default_factory=list)
    payments: Dict[str, Dict[int, PaymentRecord]] = field(default_factory=dict)
    loans: Dict[str, List[LoanRecord]] = field(default_factory=dict)
    logs: Dict[str, List[TransactionLog]] = field(default_factory=dict)


@dataclass(frozen=True)
class LedgerStats:
    """Dashboard totals for a fiscal year"""

    total_customers: int
    settled_count: int
    pending_count: int
    active_loan_customers: int
    total_principal_disbursed: int
    tax_collected: int
