"""Snapshot <-> key-value documents. Field names follow the stored browser format."""

import logging
from datetime import date, datetime
from typing import Callable, Dict, List, Mapping, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from hpg_ledger.domain.models import (
    Customer,
    LedgerSnapshot,
    LineItem,
    LoanRecord,
    LoanType,
    LogType,
    PaymentRecord,
    RepaymentCycle,
    TransactionLog,
)

T = TypeVar("T")


class StorageKeys:
    """One namespaced key per collection"""

    CUSTOMERS = "hpg_tax_customers_v8"
    PAYMENTS = "hpg_tax_payment_history_v8"
    LOANS = "hpg_tax_loan_history_v8"
    LOGS = "hpg_tax_transaction_logs_v8"

    ALL = (CUSTOMERS, PAYMENTS, LOANS, LOGS)


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CustomerDocument(_Document):
    token: str
    name: str
    tax_type: str = Field(alias="taxType")
    district: str = ""
    price: str = "0"
    brokerage: str = ""
    business_plus_active: bool = Field(False, alias="businessPlusActive")


class LineItemDocument(_Document):
    label: str
    amount: int = Field(..., ge=0)


class PaymentDocument(_Document):
    year: int
    items: List[LineItemDocument] = []


class LoanDocument(_Document):
    id: str
    name: str = ""
    principal: int = Field(..., alias="amount")
    annual_rate_percent: float = Field(..., alias="interestRate")
    duration_months: int = Field(..., gt=0, alias="durationMonths")
    paid_months: int = Field(0, ge=0, alias="paidMonths")
    total_repayment: int = Field(..., alias="totalRepayment")
    paid_amount: int = Field(0, ge=0, alias="paidAmount")
    disbursal_date: date = Field(..., alias="date")
    is_repaid: bool = Field(False, alias="isRepaid")  # derived; written for readers, ignored on load
    loan_type: LoanType = Field(LoanType.REGULAR, alias="loanType")
    repayment_cycle: RepaymentCycle = Field(RepaymentCycle.MONTHLY, alias="repaymentCycle")


class LogDocument(_Document):
    id: str
    timestamp: datetime = Field(..., alias="date")
    type: LogType
    description: str
    amount: int
    reference: Optional[str] = None


_customers_adapter = TypeAdapter(List[CustomerDocument])
_payments_adapter = TypeAdapter(Dict[str, Dict[int, PaymentDocument]])
_loans_adapter = TypeAdapter(Dict[str, List[LoanDocument]])
_logs_adapter = TypeAdapter(Dict[str, List[LogDocument]])


def customer_from_document(doc: CustomerDocument) -> Customer:
    return Customer(
        token=doc.token,
        name=doc.name,
        tax_type=doc.tax_type,
        district=doc.district,
        price=doc.price,
        brokerage=doc.brokerage,
        business_plus_active=doc.business_plus_active,
    )


def _payment_from_document(doc: PaymentDocument) -> PaymentRecord:
    return PaymentRecord(year=doc.year, items=[LineItem(i.label, i.amount) for i in doc.items])


def _loan_from_document(doc: LoanDocument) -> LoanRecord:
    return LoanRecord(
        id=doc.id,
        name=doc.name,
        principal=doc.principal,
        annual_rate_percent=doc.annual_rate_percent,
        duration_months=doc.duration_months,
        total_repayment=doc.total_repayment,
        disbursal_date=doc.disbursal_date,
        loan_type=doc.loan_type,
        repayment_cycle=doc.repayment_cycle,
        paid_months=min(doc.paid_months, doc.duration_months),
        paid_amount=doc.paid_amount,
    )


def _log_from_document(doc: LogDocument) -> TransactionLog:
    return TransactionLog(
        id=doc.id,
        timestamp=doc.timestamp,
        type=doc.type,
        description=doc.description,
        amount=doc.amount,
        reference=doc.reference,
    )


def encode_snapshot(snapshot: LedgerSnapshot) -> Dict[str, str]:
    """Serialize every collection. All four keys are always written together."""
    customers = [
        CustomerDocument(
            token=c.token,
            name=c.name,
            tax_type=c.tax_type,
            district=c.district,
            price=c.price,
            brokerage=c.brokerage,
            business_plus_active=c.business_plus_active,
        )
        for c in snapshot.customers
    ]
    payments = {
        token: {
            year: PaymentDocument(
                year=record.year,
                items=[LineItemDocument(label=i.label, amount=i.amount) for i in record.items],
            )
            for year, record in by_year.items()
        }
        for token, by_year in snapshot.payments.items()
    }
    loans = {
        token: [
            LoanDocument(
                id=loan.id,
                name=loan.name,
                principal=loan.principal,
                annual_rate_percent=loan.annual_rate_percent,
                duration_months=loan.duration_months,
                paid_months=loan.paid_months,
                total_repayment=loan.total_repayment,
                paid_amount=loan.paid_amount,
                disbursal_date=loan.disbursal_date,
                is_repaid=loan.is_repaid,
                loan_type=loan.loan_type,
                repayment_cycle=loan.repayment_cycle,
            )
            for loan in token_loans
        ]
        for token, token_loans in snapshot.loans.items()
    }
    logs = {
        token: [
            LogDocument(
                id=entry.id,
                timestamp=entry.timestamp,
                type=entry.type,
                description=entry.description,
                amount=entry.amount,
                reference=entry.reference,
            )
            for entry in entries
        ]
        for token, entries in snapshot.logs.items()
    }

    return {
        StorageKeys.CUSTOMERS: _customers_adapter.dump_json(customers, by_alias=True).decode(),
        StorageKeys.PAYMENTS: _payments_adapter.dump_json(payments, by_alias=True).decode(),
        StorageKeys.LOANS: _loans_adapter.dump_json(loans, by_alias=True).decode(),
        StorageKeys.LOGS: _logs_adapter.dump_json(logs, by_alias=True).decode(),
    }


_ADAPTERS: Dict[str, TypeAdapter] = {
    StorageKeys.CUSTOMERS: _customers_adapter,
    StorageKeys.PAYMENTS: _payments_adapter,
    StorageKeys.LOANS: _loans_adapter,
    StorageKeys.LOGS: _logs_adapter,
}


def malformed_keys(values: Mapping[str, Optional[str]]) -> List[str]:
    """Storage keys whose stored document does not validate. Missing keys are not malformed."""
    malformed = []
    for key in StorageKeys.ALL:
        raw = values.get(key)
        if raw is None:
            continue
        try:
            _ADAPTERS[key].validate_json(raw)
        except ValidationError:
            malformed.append(key)
    return malformed


def _decode_key(
    values: Mapping[str, Optional[str]],
    key: str,
    convert: Callable[[object], T],
    default: Callable[[], T],
) -> T:
    raw = values.get(key)
    if raw is None:
        return default()
    return convert(_ADAPTERS[key].validate_json(raw))


def decode_snapshot(values: Mapping[str, Optional[str]]) -> LedgerSnapshot:
    """
    Rebuild a snapshot from stored documents.

    The four collections fail closed together: if any stored collection is
    malformed the whole snapshot loads as empty instead of raising, so log
    entries never outlive the loans and assessments they describe. A missing
    key loads as an empty collection.
    """
    try:
        return _decode_collections(values)
    except (ValidationError, ValueError) as e:
        logging.warning(
            "Discarding malformed ledger snapshot",
            extra={"malformed_keys": malformed_keys(values), "error": str(e)},
        )
        return LedgerSnapshot()


def _decode_collections(values: Mapping[str, Optional[str]]) -> LedgerSnapshot:
    return LedgerSnapshot(
        customers=_decode_key(
            values,
            StorageKeys.CUSTOMERS,
            lambda docs: [customer_from_document(d) for d in docs],
            list,
        ),
        payments=_decode_key(
            values,
            StorageKeys.PAYMENTS,
            lambda docs: {
                token: {year: _payment_from_document(d) for year, d in by_year.items()}
                for token, by_year in docs.items()
            },
            dict,
        ),
        loans=_decode_key(
            values,
            StorageKeys.LOANS,
            lambda docs: {token: [_loan_from_document(d) for d in ds] for token, ds in docs.items()},
            dict,
        ),
        logs=_decode_key(
            values,
            StorageKeys.LOGS,
            lambda docs: {token: [_log_from_document(d) for d in ds] for token, ds in docs.items()},
            dict,
        ),
    )


def parse_customers(raw: str) -> List[Customer]:
    """Parse a JSON customer list in the stored format (used for seed files)"""
    return [customer_from_document(d) for d in _customers_adapter.validate_json(raw)]
