"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from hpg_ledger.domain.models import (
    Customer,
    InstallmentStatus,
    LoanType,
    LogType,
    RepaymentCycle,
)
from hpg_ledger.domain.queries import CustomerFilter


class LineItemSchema(BaseModel):
    """Single billed line on an assessment"""

    label: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0)


class AssessmentRequest(BaseModel):
    """Request body for POST /v1/customers/{token}/assessments/{year}"""

    items: List[LineItemSchema] = Field(default_factory=list, description="Selected tax line items")


class AssessmentResponse(BaseModel):
    token: str
    year: int
    settled: bool
    items: List[LineItemSchema]
    base_fee: int
    total: int
    total_in_words: str


class LoanRequest(BaseModel):
    """Request body for POST /v1/customers/{token}/loans"""

    principal: int = Field(..., gt=0, description="Amount disbursed")
    annual_rate_percent: float = Field(12.0, ge=0)
    duration_months: int = Field(12, gt=0)
    loan_type: LoanType = LoanType.REGULAR
    repayment_cycle: RepaymentCycle = RepaymentCycle.MONTHLY
    name: Optional[str] = None


class PenaltySchema(BaseModel):
    overdue_count: int
    monthly_penalty: int
    total_penalty: int


class LoanResponse(BaseModel):
    id: str
    name: str
    principal: int
    annual_rate_percent: float
    duration_months: int
    paid_months: int
    paid_amount: int
    total_repayment: int
    emi: int
    balance: int
    disbursal_date: date
    is_repaid: bool
    loan_type: LoanType
    repayment_cycle: RepaymentCycle
    penalty: PenaltySchema


class LoanListResponse(BaseModel):
    token: str
    outstanding_balance: int
    loans: List[LoanResponse]


class InstallmentSchema(BaseModel):
    """Single slot in an EMI schedule"""

    number: int
    due_date: date
    amount: int
    status: InstallmentStatus


class ScheduleResponse(BaseModel):
    loan_id: str
    installments: List[InstallmentSchema]


class RepaymentRequest(BaseModel):
    """Request body for POST .../loans/{loan_id}/repayments"""

    installments: int = Field(..., description="Number of installments collected")


class RepaymentQuote(BaseModel):
    loan_id: str
    installments: int
    amount: int
    penalty_per_installment: int
    amount_in_words: str


class RepaymentResponse(BaseModel):
    amount_collected: int
    amount_in_words: str
    loan: LoanResponse


class PlanRequest(BaseModel):
    """Request body for POST /v1/customers/{token}/plan"""

    fee: Optional[int] = Field(None, ge=0, description="Override for the category's upgrade fee")


class PlanResponse(BaseModel):
    token: str
    business_plus_active: bool
    fee_charged: int
    fee_in_words: str


class CustomerRow(BaseModel):
    token: str
    name: str
    tax_type: str
    district: str
    settled: bool
    loan_balance: int
    trust_score: int
    score_band: str


class CustomerListResponse(BaseModel):
    year: int
    status: CustomerFilter
    search: str
    customers: List[CustomerRow]


class CustomerDetail(BaseModel):
    token: str
    name: str
    tax_type: str
    district: str
    price: str
    brokerage: str
    base_fee: int
    business_plus_active: bool
    upgrade_fee: Optional[int] = None  # None when the category is not eligible
    trust_score: int
    score_band: str
    loan_balance: int

    @classmethod
    def build(cls, customer: Customer, **derived) -> "CustomerDetail":
        return cls(
            token=customer.token,
            name=customer.name,
            tax_type=customer.tax_type,
            district=customer.district,
            price=customer.price,
            brokerage=customer.brokerage,
            business_plus_active=customer.business_plus_active,
            **derived,
        )


class StatsResponse(BaseModel):
    year: int
    total_customers: int
    settled_count: int
    pending_count: int
    active_loan_customers: int
    total_principal_disbursed: int
    tax_collected: int


class TaxPresetsResponse(BaseModel):
    items: List[LineItemSchema]


class HistoryItem(BaseModel):
    """Single transaction log entry"""

    id: str
    timestamp: datetime
    type: LogType
    description: str
    amount: int
    amount_in_words: str
    reference: Optional[str] = None


class HistoryResponse(BaseModel):
    token: str
    entries: List[HistoryItem]


class ReconciliationResponse(BaseModel):
    token: str
    balanced: bool
    issues: List[str]


class ErrorResponse(BaseModel):
    error: str
    detail: str
