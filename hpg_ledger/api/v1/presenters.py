"""Domain objects -> response schemas"""

from datetime import date

from hpg_ledger.api.v1.schemas import LoanResponse, PenaltySchema
from hpg_ledger.domain.loans import loan_emi, penalty_info
from hpg_ledger.domain.models import LoanRecord


def loan_response(loan: LoanRecord, today: date, penalty_rate: float) -> LoanResponse:
    penalty = penalty_info(loan, today, penalty_rate)
    return LoanResponse(
        id=loan.id,
        name=loan.name,
        principal=loan.principal,
        annual_rate_percent=loan.annual_rate_percent,
        duration_months=loan.duration_months,
        paid_months=loan.paid_months,
        paid_amount=loan.paid_amount,
        total_repayment=loan.total_repayment,
        emi=loan_emi(loan),
        balance=loan.balance,
        disbursal_date=loan.disbursal_date,
        is_repaid=loan.is_repaid,
        loan_type=loan.loan_type,
        repayment_cycle=loan.repayment_cycle,
        penalty=PenaltySchema(
            overdue_count=penalty.overdue_count,
            monthly_penalty=penalty.monthly_penalty,
            total_penalty=penalty.total_penalty,
        ),
    )
