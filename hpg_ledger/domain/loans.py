"""Loan engine - simple-interest amortization, overdue penalties and repayments"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import List, Tuple

from hpg_ledger.domain.exceptions import (
    InvalidLoanTerms,
    LoanAlreadySettled,
    NoInstallmentsSelected,
    TooManyInstallments,
)
from hpg_ledger.domain.models import (
    Installment,
    InstallmentStatus,
    LoanRecord,
    LoanTerms,
    LoanType,
    PenaltyInfo,
    RepaymentCycle,
)
from hpg_ledger.utils.date_utils import add_months, months_between
from hpg_ledger.utils.money import round_half_up, to_decimal

PENALTY_RATE = 0.02

DEFAULT_LOAN_NAMES = {
    LoanType.REGULAR: "Regular Yearly Loan",
    LoanType.DAILY: "Business Capital",
}


def validate_terms(terms: LoanTerms) -> None:
    if terms.principal <= 0:
        raise InvalidLoanTerms("Principal must be positive")
    if terms.duration_months <= 0:
        raise InvalidLoanTerms("Duration must be at least one month")
    if terms.annual_rate_percent < 0:
        raise InvalidLoanTerms("Interest rate cannot be negative")
    if terms.loan_type == LoanType.REGULAR and terms.repayment_cycle != RepaymentCycle.MONTHLY:
        raise InvalidLoanTerms("Regular loans are repaid monthly")


def total_repayment_for(principal: int, annual_rate_percent: float, duration_months: int) -> int:
    """
    Principal plus simple (non-compounding) interest, rounded half-up.

    Example:
        100000 at 12% for 12 months → 100000 × 12 × (12/12) / 100 = 12000
        interest, 112000 total.
    """
    interest = (
        to_decimal(principal)
        * to_decimal(annual_rate_percent)
        * (Decimal(duration_months) / Decimal(12))
        / Decimal(100)
    )
    return round_half_up(to_decimal(principal) + interest)


def monthly_emi(total_repayment: int, duration_months: int) -> int:
    """Equal monthly installment: round(total / duration). 112000 / 12 → 9333"""
    return round_half_up(Decimal(total_repayment) / Decimal(duration_months))


def loan_emi(loan: LoanRecord) -> int:
    return monthly_emi(loan.total_repayment, loan.duration_months)


def create_loan(terms: LoanTerms, loan_id: str, disbursal_date: date) -> LoanRecord:
    """Build a fresh loan from validated terms. total_repayment is fixed here for good."""
    validate_terms(terms)

    return LoanRecord(
        id=loan_id,
        name=terms.name or DEFAULT_LOAN_NAMES[terms.loan_type],
        principal=terms.principal,
        annual_rate_percent=terms.annual_rate_percent,
        duration_months=terms.duration_months,
        total_repayment=total_repayment_for(
            terms.principal, terms.annual_rate_percent, terms.duration_months
        ),
        disbursal_date=disbursal_date,
        loan_type=terms.loan_type,
        repayment_cycle=terms.repayment_cycle,
    )


def penalty_info(loan: LoanRecord, today: date, penalty_rate: float = PENALTY_RATE) -> PenaltyInfo:
    """
    Overdue installments and the penalty they attract as of today.

    Elapsed time is a calendar-month difference (day of month ignored); every
    elapsed month not covered by a paid installment is overdue. The penalty is
    informational and never folded into total_repayment. A repaid loan has
    nothing overdue.
    """
    elapsed_months = months_between(loan.disbursal_date, today)
    overdue_count = 0 if loan.is_repaid else max(0, elapsed_months - loan.paid_months)
    monthly_penalty = round_half_up(Decimal(loan_emi(loan)) * to_decimal(penalty_rate))

    return PenaltyInfo(
        overdue_count=overdue_count,
        monthly_penalty=monthly_penalty,
        total_penalty=overdue_count * monthly_penalty,
    )


def repayment_amount(
    loan: LoanRecord,
    installment_count: int,
    today: date,
    penalty_rate: float = PENALTY_RATE,
) -> int:
    """
    Amount collected for the next installment_count installments.

    Any overdue installment puts the monthly penalty on every selected
    installment, future ones included; it is not prorated.

    Example:
        emi 9333, 4 overdue, 2 selected → (9333 + 187) × 2 = 19040
    """
    if loan.is_repaid:
        raise LoanAlreadySettled(f"Loan {loan.id} is already repaid")
    if installment_count == 0:
        raise NoInstallmentsSelected("Select at least one installment")
    if installment_count < 0 or installment_count > loan.remaining_months:
        raise TooManyInstallments(
            f"Loan {loan.id} has {loan.remaining_months} installments left, got {installment_count}"
        )

    penalty = penalty_info(loan, today, penalty_rate)
    per_installment = loan_emi(loan) + (penalty.monthly_penalty if penalty.overdue_count > 0 else 0)
    return per_installment * installment_count


def apply_repayment(
    loan: LoanRecord,
    installment_count: int,
    today: date,
    penalty_rate: float = PENALTY_RATE,
) -> Tuple[LoanRecord, int]:
    """Return the updated loan and the amount collected. The input loan is left untouched."""
    amount = repayment_amount(loan, installment_count, today, penalty_rate)
    updated = replace(
        loan,
        paid_months=loan.paid_months + installment_count,
        paid_amount=loan.paid_amount + amount,
    )
    return updated, amount


def loan_schedule(loan: LoanRecord, today: date) -> List[Installment]:
    """
    EMI schedule with one slot per month of the loan.

    Installment k falls due k calendar months after disbursal. Every slot is one
    emi, so the slots can miss total_repayment by the emi rounding.
    """
    emi = loan_emi(loan)
    elapsed_months = months_between(loan.disbursal_date, today)

    installments = []
    for number in range(1, loan.duration_months + 1):
        if number <= loan.paid_months:
            status = InstallmentStatus.PAID
        elif number <= elapsed_months and not loan.is_repaid:
            status = InstallmentStatus.OVERDUE
        else:
            status = InstallmentStatus.UPCOMING

        installments.append(
            Installment(
                number=number,
                due_date=add_months(loan.disbursal_date, number),
                amount=emi,
                status=status,
            )
        )

    return installments
